"""Policy domain model — maps to the 'policies' table.

A policy is a renewal obligation tracked by its due date.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base

POLICY_STATUSES = ("active", "renewed", "lost")


class Policy(Base):
    __tablename__ = "policies"
    __table_args__ = (
        CheckConstraint("status IN ('active','renewed','lost')", name="policy_status_chk"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)

    policy_number = Column(String(100), nullable=True, index=True)
    insurer = Column(String(200), nullable=True, index=True)
    product = Column(String(200), nullable=True)
    due_date = Column(Date, nullable=False, index=True)
    premium = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default="active", server_default="active")
    notes = Column(Text, nullable=True)

    # Financial breakdown and vehicle plate, previously packed into notes
    iof = Column(Float, nullable=True)
    net_premium = Column(Float, nullable=True)
    commission = Column(Float, nullable=True)
    plate = Column(String(10), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    client = relationship("Client", back_populates="policies")

    def __repr__(self):
        return f"<Policy {self.id} - {self.due_date} ({self.status})>"
