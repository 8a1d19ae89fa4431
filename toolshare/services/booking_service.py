# toolshare/services/booking_service.py
"""
Fachada de reservas: compone el control de solapes y la máquina de estados.

Reglas de orden que hay que respetar:
- crear, rechazar y cancelar NO revisan reservas hermanas `pending`;
- aceptar SÍ vuelve a pasar por el ConflictResolver (excluyendo la propia
  reserva), dentro del turno por herramienta que da el almacén (válido entre
  procesos) y con compare-and-set del estado, para que dos aceptaciones
  concurrentes que se solapan no puedan ganar ambas.
"""
from datetime import datetime
from typing import Callable, Iterable, Optional, Union
import logging

from bson import ObjectId

from ..errors import InvalidRequestError, InvalidTransitionError, NotFoundError
from ..schemas.booking import Booking, BookingCreate, BookingStatus, ToolRef
from ..stores.base import BookingStore, ToolDirectory
from ..utils import to_naive_utc, utc_now
from .conflicts import ConflictResolver
from .overlap import validate_window
from .state_machine import StatusChange, action_for, ensure_transition, parse_status

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        bookings: BookingStore,
        tools: ToolDirectory,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._bookings = bookings
        self._tools = tools
        self._clock = clock
        self._resolver = ConflictResolver(bookings)

    # ---------- consultas ----------

    async def _tool(self, tool_id: int) -> ToolRef:
        tool = await self._tools.get_tool(tool_id)
        if tool is None:
            raise NotFoundError("Herramienta no encontrada")
        return tool

    async def get(self, booking_id: str) -> Booking:
        booking = await self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Reserva no encontrada")
        return booking

    async def get_user_requests(self, user_id: str) -> list[Booking]:
        """Reservas sobre herramientas del usuario (pendientes de que él actúe)."""
        return await self._bookings.list_for_owner(user_id)

    async def get_user_petitions(self, user_id: str) -> list[Booking]:
        """Reservas que el usuario ha pedido."""
        return await self._bookings.list_for_requester(user_id)

    async def get_tool_bookings(
        self,
        tool_id: int,
        statuses: Union[str, BookingStatus, Iterable[Union[str, BookingStatus]], None] = None,
    ) -> list[Booking]:
        tool = await self._tool(tool_id)
        wanted = _status_filter(statuses)
        return await self._bookings.list_for_tool(tool.id, statuses=wanted)

    # ---------- creación ----------

    async def create(
        self,
        request: BookingCreate,
        requester_id: str,
        owner_id: Optional[str] = None,
    ) -> Booking:
        start, end = to_naive_utc(request.start), to_naive_utc(request.end)
        validate_window(start, end)

        tool = await self._tool(request.tool_id)
        if owner_id is not None and owner_id != tool.owner_id:
            raise InvalidRequestError("owner_id no coincide con el dueño de la herramienta")

        # solo bloquean las aceptadas; varias pending pueden convivir
        await self._resolver.ensure_can_book(tool.id, start, end)

        booking = Booking(
            id=str(ObjectId()),
            tool_id=tool.id,
            requester_id=requester_id,
            owner_id=tool.owner_id,
            start=start,
            end=end,
            status=BookingStatus.pending,
            contact=request.contact,
            comments=request.comments,
            created_at=to_naive_utc(self._clock()),
        )
        await self._bookings.insert(booking)
        logger.info(
            f"Reserva {booking.id} creada: tool={tool.id} requester={requester_id} "
            f"[{start.isoformat()}, {end.isoformat()})"
        )
        return booking

    # ---------- transiciones ----------

    async def update_status(self, booking_id: str, new_status) -> Booking:
        await self.get(booking_id)
        target = parse_status(new_status)
        action = action_for(target)
        if action is StatusChange.ACCEPT:
            return await self.accept(booking_id)
        if action is StatusChange.REJECT:
            return await self.reject(booking_id)
        return await self.cancel(booking_id)

    async def accept(self, booking_id: str) -> Booking:
        booking = await self.get(booking_id)
        async with self._bookings.tool_guard(booking.tool_id):
            # releer dentro del lock: otra petición pudo cambiarla mientras esperábamos
            booking = await self.get(booking_id)
            ensure_transition(booking.status, BookingStatus.accepted)
            await self._resolver.ensure_can_book(
                booking.tool_id, booking.start, booking.end, exclude_id=booking.id
            )
            return await self._commit(booking, BookingStatus.accepted)

    async def reject(self, booking_id: str) -> Booking:
        booking = await self.get(booking_id)
        ensure_transition(booking.status, BookingStatus.rejected)
        return await self._commit(booking, BookingStatus.rejected)

    async def cancel(self, booking_id: str) -> Booking:
        booking = await self.get(booking_id)
        ensure_transition(booking.status, BookingStatus.cancelled)
        return await self._commit(booking, BookingStatus.cancelled)

    async def _commit(self, booking: Booking, target: BookingStatus) -> Booking:
        swapped = await self._bookings.update_status(booking.id, expected=booking.status, new=target)
        if not swapped:
            logger.warning(f"Reserva {booking.id}: el estado cambió antes de pasar a {target.value}")
            raise InvalidTransitionError("La reserva cambió de estado; vuelve a consultarla")
        logger.info(f"Reserva {booking.id}: {booking.status.value} → {target.value}")
        return booking.model_copy(update={"status": target})


def _status_filter(statuses) -> Optional[list[BookingStatus]]:
    if statuses is None:
        return None
    if isinstance(statuses, (str, BookingStatus)):
        statuses = [statuses]
    wanted = []
    for s in statuses:
        if isinstance(s, BookingStatus):
            wanted.append(s)
            continue
        try:
            wanted.append(BookingStatus(str(s).strip().lower()))
        except ValueError:
            raise InvalidRequestError(f"Filtro de estado desconocido: {s!r}")
    return wanted
