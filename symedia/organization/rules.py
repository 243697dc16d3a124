from datetime import datetime
from typing import Optional

from .. import config


def derive_path(ts: datetime) -> str:
    """
    Destination folder for a timestamp, relative to the output root.
    e.g. 2016/07-Jul/2016-07-18
    """
    ts = _require(ts)
    return config.FOLDER_PATTERN.format(
        year=ts.year,
        month=ts.month,
        month_abbr=config.MONTH_ABBR[ts.month - 1],
        day=ts.day,
    )


def derive_filename(ts: datetime, ext: str) -> str:
    """
    Canonical file name: "2016-07-18 12.29.35 +1000.mov".
    Lexical order is chronological order within a folder; the UTC offset
    keeps clips from different zones apart.
    """
    ts = _require(ts)
    stem = ts.strftime(config.FILENAME_LAYOUT)
    return f"{stem}.{ext}" if ext else stem


def _require(ts: Optional[datetime]) -> datetime:
    if ts is None:
        raise ValueError("Cannot derive a destination without a timestamp")
    if ts.tzinfo is None:
        # Naive values are local time
        ts = ts.astimezone()
    return ts
