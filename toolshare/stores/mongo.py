# toolshare/stores/mongo.py
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Dict, Iterable, Optional
import asyncio
import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from ..errors import ToolBusyError
from ..schemas.booking import Booking, BookingStatus, ToolRef
from ..services.locks import ToolLocks
from ..utils import utc_now
from .base import BookingStore, ToolDirectory

logger = logging.getLogger(__name__)

_SORT = [("start", 1), ("created_at", 1), ("_id", 1)]


def _to_doc(booking: Booking) -> Dict[str, Any]:
    doc = booking.model_dump(exclude={"id"})
    doc["_id"] = ObjectId(booking.id)
    doc["status"] = booking.status.value
    return doc


def _from_doc(doc: Dict[str, Any]) -> Booking:
    d = dict(doc)
    d["id"] = str(d.pop("_id"))
    for key in ("requester_id", "owner_id"):
        if isinstance(d.get(key), ObjectId):
            d[key] = str(d[key])
    return Booking.model_validate(d)


class MongoToolLease:
    """
    Turno por herramienta compartido entre procesos: un documento en `tool_locks`
    con _id = tool_id. Quien lo inserta lo tiene; los demás reintentan hasta
    `wait_seconds` y luego fallan con ToolBusyError. `expires_at` libera el turno
    de un worker caído (índice TTL y, mientras tanto, se puede reclamar).
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        ttl_seconds: float = 30,
        wait_seconds: float = 5,
        poll_seconds: float = 0.05,
    ):
        self._col = db.tool_locks
        self._ttl = timedelta(seconds=ttl_seconds)
        self._wait = wait_seconds
        self._poll = poll_seconds

    async def _try_acquire(self, tool_id: int, token: str) -> bool:
        now = utc_now()
        try:
            await self._col.insert_one({"_id": tool_id, "token": token, "expires_at": now + self._ttl})
            return True
        except DuplicateKeyError:
            pass
        # turno caducado de un worker que no llegó a soltarlo
        stolen = await self._col.find_one_and_update(
            {"_id": tool_id, "expires_at": {"$lt": now}},
            {"$set": {"token": token, "expires_at": now + self._ttl}},
        )
        return stolen is not None

    @asynccontextmanager
    async def hold(self, tool_id: int):
        token = str(ObjectId())
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait
        while not await self._try_acquire(tool_id, token):
            if loop.time() >= deadline:
                logger.warning(f"tool={tool_id}: sin turno tras {self._wait}s")
                raise ToolBusyError()
            await asyncio.sleep(self._poll)
        try:
            yield
        finally:
            await self._col.delete_one({"_id": tool_id, "token": token})


class MongoBookingStore(BookingStore):
    def __init__(self, db: AsyncIOMotorDatabase, lease: Optional[MongoToolLease] = None):
        self._col = db.bookings
        self._lease = lease or MongoToolLease(db)
        # primero el lock local: las peticiones del mismo proceso no sondean Mongo
        self._local = ToolLocks()

    async def insert(self, booking: Booking) -> Booking:
        await self._col.insert_one(_to_doc(booking))
        return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        if not ObjectId.is_valid(booking_id):
            return None
        doc = await self._col.find_one({"_id": ObjectId(booking_id)})
        return _from_doc(doc) if doc else None

    async def _find(self, query: Dict[str, Any]) -> list[Booking]:
        docs = await self._col.find(query).sort(_SORT).to_list(length=None)
        return [_from_doc(d) for d in docs]

    async def list_for_tool(
        self, tool_id: int, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> list[Booking]:
        query: Dict[str, Any] = {"tool_id": tool_id}
        if statuses is not None:
            query["status"] = {"$in": [BookingStatus(s).value for s in statuses]}
        return await self._find(query)

    async def list_for_owner(self, owner_id: str) -> list[Booking]:
        return await self._find({"owner_id": owner_id})

    async def list_for_requester(self, requester_id: str) -> list[Booking]:
        return await self._find({"requester_id": requester_id})

    async def update_status(
        self, booking_id: str, expected: BookingStatus, new: BookingStatus
    ) -> bool:
        if not ObjectId.is_valid(booking_id):
            return False
        # un único update condicionado al estado actual: compare-and-set atómico en Mongo
        res = await self._col.update_one(
            {"_id": ObjectId(booking_id), "status": expected.value},
            {"$set": {"status": new.value}},
        )
        return res.modified_count == 1

    @asynccontextmanager
    async def tool_guard(self, tool_id: int):
        async with self._local.hold(tool_id):
            async with self._lease.hold(tool_id):
                yield


class MongoToolDirectory(ToolDirectory):
    def __init__(self, db: AsyncIOMotorDatabase):
        self._col = db.tools

    async def get_tool(self, tool_id: int) -> Optional[ToolRef]:
        doc = await self._col.find_one({"_id": tool_id}, {"owner_id": 1})
        if not doc or doc.get("owner_id") is None:
            return None
        return ToolRef(id=tool_id, owner_id=str(doc["owner_id"]))
