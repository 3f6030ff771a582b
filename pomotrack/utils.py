def format_clock(seconds: int) -> str:
    """
    Format seconds for a timer display.

    Hours are only shown when non-zero: 125 -> "2:05", 3725 -> "1:02:05".
    """
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"

