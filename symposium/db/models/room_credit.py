from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from symposium.db.session import Base


class RoomCredit(Base):
    """Pooled credit contributed to a shared_pool room. Declared, not yet read or written."""

    __tablename__ = "room_credits"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    contributor_user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
