"""Fixed-delay pacing between external API calls."""

import time
from typing import Callable

# Returns the number of seconds to wait before the next call
PacingPolicy = Callable[[], float]


def fixed_delay(seconds: float) -> PacingPolicy:
    return lambda: seconds


def no_delay() -> PacingPolicy:
    return fixed_delay(0.0)


def pause(policy: PacingPolicy, sleep: Callable[[float], None] | None = None) -> None:
    delay = policy()
    if delay > 0:
        (sleep or time.sleep)(delay)
