"""
Key-value store over the ``kv_store`` table.

The store is the only persistence primitive the application uses:
point reads and writes plus an ordered prefix scan.  Values are JSON
documents.  A store instance is bound to one ``AsyncSession`` (unit of
work); the request dependency commits or rolls it back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from .models import KVEntryModel


class KVStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]: ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    async def get_by_prefix(self, prefix: str) -> list[Any]:
        """Values of every key starting with *prefix*, ordered by key."""

    @abstractmethod
    async def commit(self) -> None:
        """Make every write since the last commit durable."""


class SqlKVStore(KVStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> Optional[Any]:
        entry = await self.session.get(KVEntryModel, key)
        return entry.value if entry is not None else None

    async def set(self, key: str, value: Any) -> None:
        entry = await self.session.get(KVEntryModel, key)
        if entry is None:
            self.session.add(KVEntryModel(key=key, value=value))
        else:
            entry.value = value
            flag_modified(entry, "value")
        await self.session.flush()

    async def get_by_prefix(self, prefix: str) -> list[Any]:
        result = await self.session.execute(
            select(KVEntryModel.value)
            .where(KVEntryModel.key.startswith(prefix, autoescape=True))
            .order_by(KVEntryModel.key)
        )
        return list(result.scalars().all())

    async def commit(self) -> None:
        await self.session.commit()
