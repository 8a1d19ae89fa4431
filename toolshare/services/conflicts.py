# toolshare/services/conflicts.py
"""
Resolución de conflictos de fechas.

Solo una reserva `accepted` bloquea: las `pending` pueden convivir en el mismo
hueco y las `rejected`/`cancelled` son inertes.
"""
from datetime import datetime
from typing import Iterable, Optional
import logging

from ..errors import DatesConflictError
from ..schemas.booking import Booking, BookingStatus
from ..stores.base import BookingStore
from .overlap import overlaps

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = frozenset({BookingStatus.accepted})


def find_conflicts(
    start: datetime,
    end: datetime,
    existing: Iterable[Booking],
    exclude_id: Optional[str] = None,
) -> list[Booking]:
    return [
        b for b in existing
        if b.status in BLOCKING_STATUSES
        and b.id != exclude_id
        and overlaps(start, end, b.start, b.end)
    ]


def ensure_no_conflict(
    start: datetime,
    end: datetime,
    existing: Iterable[Booking],
    exclude_id: Optional[str] = None,
    tool_id: Optional[int] = None,
) -> None:
    conflicts = find_conflicts(start, end, existing, exclude_id)
    if conflicts:
        logger.warning(
            f"Conflicto de fechas en tool={tool_id} [{start.isoformat()}, {end.isoformat()}) "
            f"con {[c.id for c in conflicts]}"
        )
        raise DatesConflictError()


class ConflictResolver:
    def __init__(self, bookings: BookingStore):
        self._bookings = bookings

    async def ensure_can_book(
        self,
        tool_id: int,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> None:
        """Lanza DatesConflictError si [start, end) pisa una reserva aceptada de la herramienta."""
        accepted = await self._bookings.list_for_tool(tool_id, statuses=BLOCKING_STATUSES)
        ensure_no_conflict(start, end, accepted, exclude_id, tool_id=tool_id)
