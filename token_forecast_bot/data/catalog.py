"""
Token catalog mapping asset symbols to prediction model indices.

The order and indices are fixed by the model's training data and must never
change at runtime.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

DEFAULT_TOKENS: Mapping[str, int] = MappingProxyType({
    "WBTC": 0, "WETH": 1, "USDC": 2, "USDT": 3, "DAI": 4, "LINK": 5,
    "AAVE": 6, "STETH": 7, "WSTETH": 8, "ETH": 9, "FRAX": 10, "RETH": 11,
    "YFI": 12, "MIM": 13, "3CRV": 14, "ALCX": 15, "MKR": 16, "STMATIC": 17,
    "WAVAX": 18, "UNI": 19, "COMP": 20, "GNO": 21, "COW": 22, "ALUSD": 23,
    "SAVAX": 24, "WMATIC": 25, "CVX": 26, "WOO": 27, "TUSD": 28, "FRXETH": 29,
})


class TokenCatalog:
    """Immutable, ordered symbol -> index lookup."""

    def __init__(self, tokens: Optional[Mapping[str, int]] = None):
        entries = dict(DEFAULT_TOKENS if tokens is None else tokens)

        for symbol, index in entries.items():
            if not isinstance(index, int) or isinstance(index, bool) or index < 0:
                raise ValueError(f"Token index must be a non-negative integer: {symbol}={index!r}")
        if len(set(entries.values())) != len(entries):
            raise ValueError("Token indices must be unique")

        self._tokens: Mapping[str, int] = MappingProxyType(entries)

    def lookup(self, symbol: str) -> Optional[int]:
        """Return the model index for ``symbol``, or None if it is unknown."""
        return self._tokens.get(symbol)

    def contains(self, symbol: str) -> bool:
        return symbol in self._tokens

    def symbols(self) -> list[str]:
        """Symbols in catalog order."""
        return list(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._tokens


default_catalog = TokenCatalog()
