from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from symposium.db.session import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Identity issued by the external auth provider
    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True, index=True)
    name = Column(String(120), nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
