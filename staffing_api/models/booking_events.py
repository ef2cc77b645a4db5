"""BookingEvent model for the audit trail of booking transitions."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy import func
from sqlalchemy.orm import relationship

from staffing_api.config.database import Base


class BookingEvent(Base):
    """
    Audit trail for booking status changes.

    One row per transition of a resource assignment, whoever triggered it.
    """

    __tablename__ = "booking_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(
        Integer,
        ForeignKey("resource_assignments.id", ondelete="CASCADE"),
        nullable=False,
    )

    # open_search, accept, decline, update, complete, cancel, rebook, repair
    action = Column(String(20), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    candidate_id = Column(String(36), nullable=True)  # Candidate concerned, if any
    comment = Column(Text, nullable=True)

    # Who triggered it (token sub, or "system")
    actor_id = Column(String(36), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_booking_events_assignment", "assignment_id"),
        Index("ix_booking_events_created", "created_at"),
    )

    # Relationships
    assignment = relationship("ResourceAssignment", back_populates="events")

    def __repr__(self) -> str:
        return f"<BookingEvent(id={self.id}, action={self.action}, {self.from_status}->{self.to_status})>"
