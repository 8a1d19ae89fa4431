from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from .config import get_settings

_settings = get_settings()
_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None

async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(_settings.mongodb_uri)
        _db = _client[_settings.db_name]
        # Índices que usan el control de solapes y los listados
        await _db.bookings.create_index([("tool_id", 1), ("status", 1), ("start", 1)])
        await _db.bookings.create_index([("owner_id", 1), ("start", 1)])
        await _db.bookings.create_index([("requester_id", 1), ("start", 1)])
        # turnos de aceptación por herramienta: Mongo borra los caducados
        await _db.tool_locks.create_index("expires_at", expireAfterSeconds=0)
    return _db
