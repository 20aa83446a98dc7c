import asyncio
import copy
from typing import Any, Callable, Dict, Optional, Tuple

from ..config import storage
from ..errors import VersionConflict
from ..logger import get_logger

logger = get_logger(__name__)


class Versioned:
    __slots__ = ('value', 'version')
    def __init__(self, value: Any, version: int):
        self.value = value
        self.version = version


class KeyValueStore:
    """
    Key-value backend contract.

    Values are JSON-compatible. Every write bumps the key's version;
    `conditional_put` only writes when the stored version still equals
    `expected_version` (None meaning the key must not exist yet).
    """
    name = 'abstract'

    def __init__(self, max_retries: int = None, retry_delay: float = None):
        self.max_retries = max_retries or storage.max_retries
        self.retry_delay = storage.retry_delay if retry_delay is None else retry_delay

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def get(self, key: str) -> Optional[Versioned]:
        raise NotImplementedError

    async def put(self, key: str, value: Any) -> int:
        raise NotImplementedError

    async def conditional_put(self, key: str, value: Any, expected_version: Optional[int]) -> bool:
        raise NotImplementedError

    async def get_value(self, key: str, default: Any = None) -> Any:
        current = await self.get(key)
        if current is None:
            return default
        return current.value

    async def update(self, key: str, mutate: Callable[[Any], Tuple[Any, Any]],
                     default: Callable[[], Any] = None) -> Any:
        """
        Read-modify-write `key` with optimistic concurrency.

        `mutate` receives the current value (or `default()` when missing)
        and returns `(new_value, result)`; a new_value of None skips the
        write. Conflicting writers are retried with a linear backoff.
        """
        retry_count = 0
        while retry_count < self.max_retries:
            current = await self.get(key)
            if current is None:
                value = default() if default else None
                version = None
            else:
                value = copy.deepcopy(current.value)
                version = current.version

            new_value, result = mutate(value)
            if new_value is None:
                return result
            if await self.conditional_put(key, new_value, version):
                return result

            retry_count += 1
            logger.warning(f"Version conflict on {key} (attempt {retry_count}/{self.max_retries})")
            if retry_count < self.max_retries:
                await asyncio.sleep(self.retry_delay * retry_count)

        raise VersionConflict(key, retry_count)


class MemoryStore(KeyValueStore):
    """In-process store for tests and single-worker development"""
    name = 'memory'

    def __init__(self, max_retries: int = None, retry_delay: float = None):
        super().__init__(max_retries, retry_delay)
        self._data: Dict[str, Versioned] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Versioned]:
        current = self._data.get(key)
        if current is None:
            return None
        return Versioned(copy.deepcopy(current.value), current.version)

    async def put(self, key: str, value: Any) -> int:
        async with self._lock:
            current = self._data.get(key)
            version = current.version + 1 if current else 1
            self._data[key] = Versioned(copy.deepcopy(value), version)
            return version

    async def conditional_put(self, key: str, value: Any, expected_version: Optional[int]) -> bool:
        async with self._lock:
            current = self._data.get(key)
            current_version = current.version if current else None
            if current_version != expected_version:
                return False
            self._data[key] = Versioned(copy.deepcopy(value), (current_version or 0) + 1)
            return True

    def keys(self):
        return list(self._data)
