# toolshare/stores/base.py
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Iterable, Optional

from ..schemas.booking import Booking, BookingStatus, ToolRef


class BookingStore(ABC):
    @abstractmethod
    async def insert(self, booking: Booking) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def list_for_tool(
        self, tool_id: int, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def list_for_owner(self, owner_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def list_for_requester(self, requester_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self, booking_id: str, expected: BookingStatus, new: BookingStatus
    ) -> bool:
        """
        Compare-and-set: cambia el estado solo si el actual es `expected`.
        Devuelve False si la reserva no existe o su estado ya era otro.
        """
        raise NotImplementedError

    @abstractmethod
    def tool_guard(self, tool_id: int) -> AsyncContextManager[None]:
        """
        Turno exclusivo por herramienta para leer-comprobar-escribir al aceptar.
        Debe valer para todos los procesos que comparten este almacén.
        """
        raise NotImplementedError


class ToolDirectory(ABC):
    @abstractmethod
    async def get_tool(self, tool_id: int) -> Optional[ToolRef]:
        raise NotImplementedError


def sort_key(b: Booking):
    return (b.start, b.created_at, b.id)
