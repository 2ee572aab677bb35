from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from database import Base


class UserRecord(Base):
    """One JSON document per (user namespace, key): journal entries, analyses, snapshots."""

    __tablename__ = "user_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(255), nullable=False, index=True)  # opaque user identifier
    key = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)  # JSON
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("namespace", "key", name="uq_user_record_namespace_key"),
    )
