from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware UTC now; stored timestamps are always aware."""
    return datetime.now(timezone.utc)
