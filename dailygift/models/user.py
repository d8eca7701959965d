"""User model."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from dailygift.database import Base

TELEGRAM_ID_MAX_LENGTH = 64


class User(Base):
    """A person known by their Telegram identity."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    telegram_id = Column(String(TELEGRAM_ID_MAX_LENGTH), unique=True, nullable=False)
    username = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, telegram_id={self.telegram_id}, username={self.username})>"
