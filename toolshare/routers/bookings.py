# toolshare/routers/bookings.py
from fastapi import APIRouter, Depends, HTTPException, status, Path, Query, Request
from typing import List, Optional
import logging

from ..config import get_settings
from ..deps import get_booking_service
from ..schemas.booking import BookingCreate, BookingOut, BookingSlot, StatusPatch
from ..security import get_current_user_id
from ..services.booking_service import BookingService
from ..services.state_machine import StatusChange, action_for, parse_status
from ..middleware.rate_limit import apply_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

# ---------- Listados ----------

@router.get("/requests", response_model=List[BookingOut])
async def list_requests(
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    """Peticiones sobre mis herramientas."""
    return await service.get_user_requests(user_id)

@router.get("/petitions", response_model=List[BookingOut])
async def list_petitions(
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    """Reservas que he pedido yo."""
    return await service.get_user_petitions(user_id)

@router.get("/tool/{tool_id}", response_model=List[BookingSlot])
async def list_tool_bookings(
    tool_id: int,
    status_: Optional[List[str]] = Query(None, alias="status"),
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    """Ocupación de una herramienta; el detalle de cada reserva solo lo ven sus partes."""
    bookings = await service.get_tool_bookings(tool_id, statuses=status_)
    return [BookingSlot.model_validate(b.model_dump()) for b in bookings]

# ---------- Reserva individual ----------

@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(
    booking_id: str = Path(..., pattern=r"^[0-9a-fA-F]{24}$"),
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    b = await service.get(booking_id)
    if user_id not in (b.owner_id, b.requester_id):
        raise HTTPException(403, "Sin acceso a esta reserva")
    return b

@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: Request,
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    apply_rate_limit(request, settings.booking_rate_limit, "bookings:create")
    return await service.create(payload, requester_id=user_id)

@router.patch("/{booking_id}/status", response_model=BookingOut)
async def patch_status(
    body: StatusPatch,
    booking_id: str = Path(..., pattern=r"^[0-9a-fA-F]{24}$"),
    service: BookingService = Depends(get_booking_service),
    user_id: str = Depends(get_current_user_id),
):
    b = await service.get(booking_id)
    if user_id not in (b.owner_id, b.requester_id):
        raise HTTPException(403, "Sin acceso a esta reserva")

    # aceptar/rechazar es cosa del dueño; cancelar, del solicitante
    action = action_for(parse_status(body.status))
    if action is StatusChange.CANCEL and user_id != b.requester_id:
        raise HTTPException(403, "Solo el solicitante puede cancelar la reserva")
    if action in (StatusChange.ACCEPT, StatusChange.REJECT) and user_id != b.owner_id:
        raise HTTPException(403, "Solo el dueño de la herramienta puede aceptar o rechazar")

    return await service.update_status(booking_id, body.status)
