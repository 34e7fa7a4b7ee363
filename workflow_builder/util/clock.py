from datetime import datetime, UTC


def utcnow() -> datetime:
    """Current UTC time truncated to seconds, the precision stored on the wire."""
    return datetime.now(UTC).replace(microsecond=0)
