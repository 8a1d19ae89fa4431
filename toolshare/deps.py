# toolshare/deps.py
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from .config import get_settings
from .db import get_db
from .services.booking_service import BookingService
from .stores.memory import MemoryBookingStore, MemoryToolDirectory
from .stores.mongo import MongoBookingStore, MongoToolDirectory

_service: BookingService | None = None


def build_memory_service() -> BookingService:
    return BookingService(MemoryBookingStore(), MemoryToolDirectory())


async def _mongo_db() -> AsyncIOMotorDatabase | None:
    if get_settings().store_provider == "memory":
        return None
    return await get_db()


async def get_booking_service(db: AsyncIOMotorDatabase | None = Depends(_mongo_db)) -> BookingService:
    global _service
    if _service is None:
        if db is None:
            _service = build_memory_service()
        else:
            _service = BookingService(MongoBookingStore(db), MongoToolDirectory(db))
    return _service
