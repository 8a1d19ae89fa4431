# toolshare/services/overlap.py
from datetime import datetime

from ..errors import InvalidDatesError


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Solape de intervalos semiabiertos [start, end): tocarse en un extremo no cuenta."""
    return (a_start < b_end) and (b_start < a_end)


def validate_window(start: datetime, end: datetime) -> None:
    if not start < end:
        raise InvalidDatesError("end debe ser posterior a start")
