"""
Utility functions module.

Date parsing and calendar arithmetic shared by the normalizer and the
date picker.

Date Semantics:
- Selection dates are calendar dates with no time component
- Day differences are counted in whole calendar days
- The date picker always emits YYYY/MM/DD payloads
"""
