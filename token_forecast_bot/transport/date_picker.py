"""
Inline calendar date picker for Telegram.

Renders a month grid as an inline keyboard. Month paging is handled here and
never reaches the conversation tracker; picking a day sends the date back as
a plain ``YYYY/MM/DD`` callback payload.
"""

import calendar
from datetime import date
from typing import Callable, Optional

import structlog
from telegram import Bot, CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup

from ..utils.dates import format_selection_date
from .base import BaseDatePicker

logger = structlog.get_logger(__name__)

CALLBACK_PREFIX = "cal:"
NAV_PREFIX = CALLBACK_PREFIX + "nav:"
IGNORE_CALLBACK = CALLBACK_PREFIX + "ignore"
DATE_PROMPT = "Select a date:"
WEEKDAY_LABELS = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")


def is_picker_callback(data: Optional[str]) -> bool:
    """True for callbacks the picker consumes itself."""
    return bool(data) and data.startswith(CALLBACK_PREFIX)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months forward (or back) from year/month."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _ignore(text: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=IGNORE_CALLBACK)


def build_calendar_keyboard(year: int, month: int) -> InlineKeyboardMarkup:
    """Month grid with navigation, one button per day."""
    rows = [
        [_ignore(f"{calendar.month_name[month]} {year}")],
        [_ignore(label) for label in WEEKDAY_LABELS],
    ]

    for week in calendar.monthcalendar(year, month):
        row = []
        for day in week:
            if day == 0:
                row.append(_ignore(" "))
            else:
                row.append(InlineKeyboardButton(
                    str(day),
                    callback_data=format_selection_date(date(year, month, day))
                ))
        rows.append(row)

    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)
    rows.append([
        InlineKeyboardButton("<", callback_data=f"{NAV_PREFIX}{prev_year:04d}-{prev_month:02d}"),
        _ignore(" "),
        InlineKeyboardButton(">", callback_data=f"{NAV_PREFIX}{next_year:04d}-{next_month:02d}"),
    ])

    return InlineKeyboardMarkup(rows)


def parse_nav_callback(data: str) -> Optional[tuple[int, int]]:
    """Extract (year, month) from a navigation callback."""
    if not data.startswith(NAV_PREFIX):
        return None
    try:
        year_text, month_text = data[len(NAV_PREFIX):].split("-", 1)
        year, month = int(year_text), int(month_text)
    except ValueError:
        return None
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        return None
    return year, month


class InlineCalendarPicker(BaseDatePicker):
    """Date picker backed by an inline keyboard calendar."""

    def __init__(self, bot: Bot, today: Callable[[], date] = date.today):
        self.bot = bot
        self.today = today
        self.logger = logger

    async def begin_date_selection(self, conversation_id: str) -> None:
        """Send the calendar for the current month."""
        current = self.today()
        await self.bot.send_message(
            chat_id=int(conversation_id),
            text=DATE_PROMPT,
            reply_markup=build_calendar_keyboard(current.year, current.month)
        )

    async def handle_callback(self, query: CallbackQuery) -> None:
        """Handle navigation and filler buttons in place."""
        await query.answer()

        target = parse_nav_callback(query.data or "")
        if target is None:
            return

        year, month = target
        self.logger.debug("Calendar navigation", year=year, month=month)
        await query.edit_message_reply_markup(reply_markup=build_calendar_keyboard(year, month))
