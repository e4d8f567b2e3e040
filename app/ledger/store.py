"""
Ledger State Store
==================

The async key-value interface the registry reads and writes through. A store
handle is valid for one invocation; the host owns commit and rollback.

``scan_prefix`` is an async context manager so the underlying cursor is
released on every exit path:

    async with store.scan_prefix("House") as entries:
        async for key, value in entries:
            ...
"""
import bisect
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from app.ledger.keys import composite_key_prefix

StateEntry = Tuple[str, bytes]


@runtime_checkable
class StateStore(Protocol):

    async def get_state(self, key: str) -> Optional[bytes]:
        """Stored bytes for ``key``, or None when nothing is stored."""
        ...

    async def put_state(self, key: str, value: bytes) -> None:
        """Insert or overwrite ``key``."""
        ...

    def scan_prefix(self, type_tag: str) -> AsyncContextManager[AsyncIterator[StateEntry]]:
        """All entries of ``type_tag`` in key order."""
        ...


class InMemoryStateStore:
    """Sorted in-process store. Used for tests and local tooling."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = {}
        self._keys: List[str] = []
        self.open_scans = 0
        for key, value in (initial or {}).items():
            self._insert(key, value)

    def _insert(self, key: str, value: bytes) -> None:
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    async def get_state(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def put_state(self, key: str, value: bytes) -> None:
        self._insert(key, value)

    @asynccontextmanager
    async def scan_prefix(self, type_tag: str):
        prefix = composite_key_prefix(type_tag)
        start = bisect.bisect_left(self._keys, prefix)
        # snapshot so writes during iteration do not shift the cursor
        keys = []
        for key in self._keys[start:]:
            if not key.startswith(prefix):
                break
            keys.append(key)

        async def entries():
            for key in keys:
                yield key, self._data[key]

        self.open_scans += 1
        iterator = entries()
        try:
            yield iterator
        finally:
            await iterator.aclose()
            self.open_scans -= 1

    def __len__(self) -> int:
        return len(self._data)
