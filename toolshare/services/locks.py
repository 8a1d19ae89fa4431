# toolshare/services/locks.py
import asyncio
from contextlib import asynccontextmanager


class ToolLocks:
    """Un asyncio.Lock por herramienta; herramientas distintas no compiten."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}   # quien lo tiene + quienes esperan

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, tool_id: int):
        # sin await entre la consulta y la inserción: atómico dentro del event loop
        lock = self._locks.get(tool_id)
        if lock is None:
            lock = self._locks[tool_id] = asyncio.Lock()
        self._users[tool_id] = self._users.get(tool_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[tool_id] -= 1
            if self._users[tool_id] == 0:
                del self._users[tool_id]
                del self._locks[tool_id]
