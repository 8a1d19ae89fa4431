"""
Rate limiting por endpoint usando slowapi
"""
from fastapi import Request, HTTPException
from limits import parse
from slowapi.util import get_remote_address

def apply_rate_limit(request: Request, limit: str, scope: str = "default"):
    """
    Aplica rate limiting a un endpoint específico.
    Uso: apply_rate_limit(request, "15/minute", "bookings")

    Si el limiter no está configurado (por ejemplo, en tests), la función no hace nada.
    """
    limiter = getattr(request.app.state, "limiter", None)
    if limiter is None:
        return

    key = get_remote_address(request)

    # hit() incrementa el contador y devuelve False si ya se superó el límite
    if not limiter.limiter.hit(parse(limit), scope, key):
        raise HTTPException(
            status_code=429,
            detail=f"Demasiadas solicitudes. Límite: {limit}. Intenta más tarde."
        )
