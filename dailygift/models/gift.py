"""Gift issuance model."""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from dailygift.database import Base


class Gift(Base):
    """A gift issued to a user for one calendar day."""

    __tablename__ = "gifts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    gift_type = Column(String(255), nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    received_on = Column(Date, nullable=False, index=True)

    # Constraints - one gift per user per day
    __table_args__ = (
        UniqueConstraint("user_id", "received_on", name="uq_gifts_user_daily"),
    )

    def __repr__(self):
        return (f"<Gift(id={self.id}, user_id={self.user_id}, gift_type={self.gift_type},"
                f" received_on={self.received_on})>")
