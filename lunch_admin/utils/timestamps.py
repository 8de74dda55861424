from datetime import datetime, timezone

def now_iso() -> str:
    """Current instant as an ISO-8601 UTC string with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
