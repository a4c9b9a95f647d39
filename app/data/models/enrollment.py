from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, DateTime, JSON, UniqueConstraint

from app.data.database import Base


class EnrollmentModel(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, nullable=False)

    completed_lessons = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    #idempotency backstop for settlement
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="u_user_course"),)
