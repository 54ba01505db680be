from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from symposium.db.session import Base


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_messages_role"),
        CheckConstraint(
            "(role = 'user' AND user_id IS NOT NULL) OR (role != 'user' AND user_id IS NULL)",
            name="ck_messages_author",
        ),
        CheckConstraint("cost_cents >= 0", name="ck_messages_cost"),
    )

    # Autoincrement id doubles as the persistence sequence; ordered reads use (created_at, id)
    id = Column(Integer, primary_key=True, index=True)
    # Parent room row; messages go away only with their room
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    # Null for assistant and system messages
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=True)
    # Raw message content
    content = Column(Text, nullable=False)
    # user | assistant | system
    role = Column(String(10), nullable=False)
    cost_cents = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    room = relationship("Room", back_populates="messages")
    profile = relationship("Profile", lazy="joined")
