# toolshare/stores/memory.py
from typing import Iterable, Optional

from ..schemas.booking import Booking, BookingStatus, ToolRef
from ..services.locks import ToolLocks
from .base import BookingStore, ToolDirectory, sort_key


class MemoryBookingStore(BookingStore):
    # Los métodos no hacen await internamente, así que cada uno es atómico en el event loop.
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._guards = ToolLocks()

    async def insert(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise KeyError(f"booking {booking.id} ya existe")
        self._bookings[booking.id] = booking.model_copy()
        return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        b = self._bookings.get(booking_id)
        return b.model_copy() if b else None

    def _select(self, pred) -> list[Booking]:
        return sorted((b.model_copy() for b in self._bookings.values() if pred(b)), key=sort_key)

    async def list_for_tool(
        self, tool_id: int, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        wanted = set(statuses) if statuses is not None else None
        return self._select(
            lambda b: b.tool_id == tool_id and (wanted is None or b.status in wanted)
        )

    async def list_for_owner(self, owner_id: str) -> list[Booking]:
        return self._select(lambda b: b.owner_id == owner_id)

    async def list_for_requester(self, requester_id: str) -> list[Booking]:
        return self._select(lambda b: b.requester_id == requester_id)

    async def update_status(
        self, booking_id: str, expected: BookingStatus, new: BookingStatus
    ) -> bool:
        current = self._bookings.get(booking_id)
        if current is None or current.status != expected:
            return False
        self._bookings[booking_id] = current.model_copy(update={"status": new})
        return True

    def tool_guard(self, tool_id: int):
        return self._guards.hold(tool_id)


class MemoryToolDirectory(ToolDirectory):
    def __init__(self) -> None:
        self._tools: dict[int, ToolRef] = {}

    def add_tool(self, tool_id: int, owner_id: str) -> ToolRef:
        tool = ToolRef(id=tool_id, owner_id=owner_id)
        self._tools[tool_id] = tool
        return tool

    async def get_tool(self, tool_id: int) -> Optional[ToolRef]:
        return self._tools.get(tool_id)
