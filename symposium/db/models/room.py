import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from symposium.db.session import Base


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("payment_model IN ('host_pays', 'shared_pool', 'per_message')", name="ck_rooms_payment_model"),
        CheckConstraint("persona_type IN ('none', 'preset', 'custom')", name="ck_rooms_persona_type"),
        CheckConstraint("persona_type != 'preset' OR persona_name IS NOT NULL", name="ck_rooms_preset_named"),
        CheckConstraint(
            "persona_type != 'custom' OR (persona_name IS NOT NULL AND persona_description IS NOT NULL)",
            name="ck_rooms_custom_described",
        ),
        CheckConstraint("max_participants > 0", name="ck_rooms_capacity"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    host_user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    ai_model = Column(String(50), nullable=False, default="gpt-4.1")
    # host_pays | shared_pool | per_message
    payment_model = Column(String(20), nullable=False, default="host_pays")
    max_participants = Column(Integer, nullable=False, default=5)
    # none | preset | custom
    persona_type = Column(String(10), nullable=False, default="none")
    persona_name = Column(String(120), nullable=True)
    persona_description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    messages = relationship("Message", back_populates="room", cascade="all, delete-orphan", passive_deletes=True)
    participants = relationship("Participant", back_populates="room", cascade="all, delete-orphan", passive_deletes=True)
