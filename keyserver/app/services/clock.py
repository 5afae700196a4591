"""
Wall clock for expiry decisions.

All expiry comparisons use integer Unix epoch seconds.
"""

import time


def now_epoch() -> int:
    """Current time as whole Unix epoch seconds."""
    return int(time.time())
