"""
Redis-based distributed lock.

Serialises read-modify-write sequences on a single entity (a ride's
passenger list, a driver's running rating, a passenger's daily counter)
across API processes.

Implementation uses SET NX EX for acquire, polled with a short backoff
until ``wait_seconds`` elapses, and a Lua script for atomic
check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

import redis.asyncio as aioredis

from uniride.domain.errors import Conflict

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 10,
        wait_seconds: float = 0.0,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.wait = wait_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire, retrying until ``wait_seconds``. True on success."""
        deadline = time.monotonic() + self.wait
        delay = 0.01
        while True:
            if await self.redis.set(self.key, self.token, nx=True, ex=self.ttl):
                return True
            if time.monotonic() + delay > deadline:
                return False
            await asyncio.sleep(delay)
            delay = min(delay * 2, 0.2)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        if not await self.acquire():
            logger.warning("Lock busy: %s", self.key)
            raise Conflict()
        return self

    async def __aexit__(self, *args):
        await self.release()


class LockFactory:
    """Builds per-entity locks sharing one Redis client and timing policy."""

    def __init__(
        self, client: aioredis.Redis, ttl_seconds: int = 10, wait_seconds: float = 3.0
    ):
        self.redis = client
        self.ttl = ttl_seconds
        self.wait = wait_seconds

    def __call__(self, key: str) -> DistributedLock:
        return DistributedLock(
            self.redis, key, ttl_seconds=self.ttl, wait_seconds=self.wait
        )
