"""
Errores del núcleo de reservas.

Cada tipo lleva un `code` estable para que la capa HTTP (y cualquier UI)
pueda distinguir "elige otras fechas" de "no permitido" o "no existe".
"""


class BookingError(Exception):
    code = "booking_error"
    status_code = 400
    default_message = "Error de reserva"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(BookingError):
    """Datos de entrada incoherentes (dueño que no cuadra, filtro desconocido...)."""
    code = "invalid_request"
    status_code = 400
    default_message = "Petición inválida"


class InvalidDatesError(InvalidRequestError):
    """Rango de fechas mal formado (start >= end)."""
    code = "invalid_dates"
    default_message = "end debe ser posterior a start"


class NotFoundError(BookingError):
    code = "not_found"
    status_code = 404
    default_message = "Recurso no encontrado"


class DatesConflictError(BookingError):
    """Solapa con una reserva ya aceptada de la misma herramienta."""
    code = "dates_conflict"
    status_code = 409
    default_message = "Las fechas solapan con una reserva aceptada"


class InvalidTransitionError(BookingError):
    code = "invalid_transition"
    status_code = 400
    default_message = "Transición de estado no permitida"


class ToolBusyError(BookingError):
    """Otra aceptación sobre la misma herramienta no soltó el turno a tiempo; se puede reintentar."""
    code = "tool_busy"
    status_code = 409
    default_message = "La herramienta está ocupada con otra aceptación; inténtalo de nuevo"
