"""
Configuración de pytest para tests
"""
import os
import pytest
from dotenv import load_dotenv

load_dotenv()
os.environ.setdefault("STORE_PROVIDER", "memory")

from toolshare.services.booking_service import BookingService
from toolshare.stores.memory import MemoryBookingStore, MemoryToolDirectory

from helpers import OTHER, OWNER, T, TOOL_ID

# Configuración de test database (solo para tests de MongoBookingStore)
TEST_DB_NAME = os.getenv("TEST_DB_NAME", "toolshare_test")
TEST_MONGODB_URI = os.getenv("TEST_MONGODB_URI", os.getenv("MONGODB_URI", "mongodb://localhost:27017"))


@pytest.fixture
def tools():
    directory = MemoryToolDirectory()
    directory.add_tool(TOOL_ID, OWNER)
    directory.add_tool(2, OTHER)
    return directory

@pytest.fixture
def store():
    return MemoryBookingStore()

@pytest.fixture
def service(store, tools):
    return BookingService(store, tools, clock=lambda: T)

@pytest.fixture
async def client(service):
    """Cliente HTTP contra la app con el servicio en memoria inyectado"""
    from httpx import AsyncClient, ASGITransport
    from toolshare.deps import get_booking_service
    from toolshare.main import app

    # Deshabilitar rate limiting y usar el servicio del test
    app.state.limiter = None
    app.dependency_overrides[get_booking_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
async def test_db():
    """Base de datos Mongo de test; se salta si no hay servidor"""
    from motor.motor_asyncio import AsyncIOMotorClient
    from pymongo.errors import PyMongoError

    client = AsyncIOMotorClient(TEST_MONGODB_URI, serverSelectionTimeoutMS=500)
    try:
        await client.admin.command("ping")
    except PyMongoError:
        client.close()
        pytest.skip("MongoDB no disponible en TEST_MONGODB_URI")
    await client.drop_database(TEST_DB_NAME)
    yield client[TEST_DB_NAME]
    await client.drop_database(TEST_DB_NAME)
    client.close()
