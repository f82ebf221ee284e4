"""Reconnect backoff policy for the push watcher."""


def reconnect_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 30.0) -> float:
    """
    Delay before reconnect attempt number ``attempt`` (1-based).

    Doubles per attempt starting at base_delay and is capped at max_delay:
    1, 2, 4, 8, 16, 30, 30, ... seconds with the defaults.

    Raises:
        ValueError: If attempt is smaller than 1
    """
    if attempt < 1:
        raise ValueError(f"Reconnect attempt must be >= 1, got {attempt}")
    return min(base_delay * 2 ** (attempt - 1), max_delay)
