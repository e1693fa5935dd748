from datetime import datetime, timezone as tz


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=tz.utc)
