from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from symposium.db.session import Base


class PresetPersona(Base):
    __tablename__ = "preset_personas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    system_prompt = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
