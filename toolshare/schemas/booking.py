from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime

class BookingStatus(str, Enum):
    pending   = "pending"
    accepted  = "accepted"
    rejected  = "rejected"
    cancelled = "cancelled"

class ToolRef(BaseModel):
    """Lo único que el núcleo necesita saber de una herramienta."""
    id: int
    owner_id: str

class Booking(BaseModel):
    id: str
    tool_id: int
    requester_id: str
    owner_id: str
    start: datetime
    end: datetime
    status: BookingStatus = BookingStatus.pending
    contact: str = ""
    comments: str = ""
    created_at: datetime

class BookingCreate(BaseModel):
    tool_id: int
    start: datetime
    end: datetime
    contact: str = Field("", max_length=200)
    comments: str = Field("", max_length=2000)

class BookingOut(Booking):
    pass

class BookingSlot(BaseModel):
    """Vista pública de disponibilidad: sin datos de contacto ni comentarios."""
    id: str
    tool_id: int
    start: datetime
    end: datetime
    status: BookingStatus

class StatusPatch(BaseModel):
    # se valida en el servicio: valores desconocidos -> InvalidTransitionError
    status: str
