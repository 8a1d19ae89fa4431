from datetime import datetime, timedelta

OWNER = "665f1c0a9b1e4a0012345601"       # dueño de la herramienta
REQUESTER = "665f1c0a9b1e4a0012345602"   # quien pide la reserva
OTHER = "665f1c0a9b1e4a0012345603"
TOOL_ID = 1

# Instante fijo: el reloj se inyecta, nunca se lee el reloj del sistema
T = datetime(2026, 3, 2, 9, 0, 0)

def window(start_h: int, end_h: int) -> tuple[datetime, datetime]:
    return T + timedelta(hours=start_h), T + timedelta(hours=end_h)

def auth(user_id: str) -> dict[str, str]:
    from toolshare.security import create_access_token
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
