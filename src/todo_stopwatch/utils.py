from __future__ import annotations

import time
from typing import Callable

# Returns the current wall-clock time in epoch milliseconds.
Clock = Callable[[], int]


# PUBLIC_INTERFACE
def now_ms() -> int:
    """Return the current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)
