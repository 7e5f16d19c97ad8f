"""
SQLAlchemy ORM models.

Tables
------
* ``kv_store`` -- generic key/value table holding JSON documents
  (profiles, rides, indexes, counters, ratings).

Indexes
-------
* The primary key on ``key`` backs both point look-ups and ordered
  prefix scans (``LIKE 'prefix%'``).
"""

from sqlalchemy import JSON, Column, DateTime, Text, func

from .database import Base


class KVEntryModel(Base):
    __tablename__ = "kv_store"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<KVEntryModel key={self.key!r}>"
