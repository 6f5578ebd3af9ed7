from datetime import datetime, timezone


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def format_duration(seconds) -> str:
    """125 -> '2m 5s', 3725 -> '1h 2m 5s'."""
    seconds = int(seconds or 0)
    if seconds <= 0:
        return "0m 0s"

    hours, remainder = divmod(seconds, 3600)
    mins, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {mins}m {secs}s"
    return f"{mins}m {secs}s"
