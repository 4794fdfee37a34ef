# backend/models/leave_request.py
import enum
from sqlalchemy import Column, Integer, Date, DateTime, Text, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from database import Base

# Lifecycle of a leave request: PENDING is the only non-terminal state
class RequestStatus(str, enum.Enum):
    PENDING = "In attesa"
    APPROVED = "Approvato"
    REJECTED = "Rifiutato"

# A leave request submitted by a user for a given category and date range
class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(
        Integer,
        ForeignKey("leave_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    motivation = Column(Text, nullable=False, default="")

    # Stored by value ("In attesa", ...) to match the reporting queries
    status = Column(
        Enum(
            RequestStatus,
            name="stato_richiesta_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )

    # Set once, when the request leaves PENDING
    evaluated_at = Column(DateTime(timezone=True), nullable=True)
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    requester = relationship("User", foreign_keys=[user_id], back_populates="leave_requests")
    evaluator = relationship("User", foreign_keys=[evaluator_id])
    category = relationship("Category", back_populates="leave_requests")
