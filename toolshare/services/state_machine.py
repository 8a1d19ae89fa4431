# toolshare/services/state_machine.py
"""
Máquina de estados de una reserva.

Todas las transiciones salen de `pending`; accepted, rejected y cancelled son
terminales. La aceptación es una operación distinta (StatusChange.ACCEPT)
porque es la única que vuelve a pasar por el control de solapes.
"""
from enum import Enum

from ..errors import InvalidTransitionError
from ..schemas.booking import BookingStatus

TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.pending: {BookingStatus.accepted, BookingStatus.rejected, BookingStatus.cancelled},
    BookingStatus.accepted: set(),
    BookingStatus.rejected: set(),
    BookingStatus.cancelled: set(),
}

TERMINAL = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


class StatusChange(str, Enum):
    ACCEPT = "accept"    # el dueño confirma (con control de solapes)
    REJECT = "reject"    # el dueño rechaza
    CANCEL = "cancel"    # el solicitante retira la petición


_ACTIONS: dict[BookingStatus, StatusChange] = {
    BookingStatus.accepted: StatusChange.ACCEPT,
    BookingStatus.rejected: StatusChange.REJECT,
    BookingStatus.cancelled: StatusChange.CANCEL,
}


def parse_status(value) -> BookingStatus:
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidTransitionError(f"Estado desconocido: {value!r}")


def action_for(target: BookingStatus) -> StatusChange:
    action = _ACTIONS.get(target)
    if action is None:
        raise InvalidTransitionError(f"No se puede pasar una reserva a {target.value}")
    return action


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Transición no permitida: {current.value} → {target.value}"
        )
