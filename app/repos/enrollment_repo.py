# app/repos/enrollment_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.data.models.enrollment import EnrollmentModel

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class EnrollmentRepo:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, user_id: int, course_id: int) -> bool:
        return self.db.execute(
            select(EnrollmentModel.id).where(
                EnrollmentModel.user_id == user_id,
                EnrollmentModel.course_id == course_id,
            )
        ).first() is not None

    def find_for_courses(self, user_id: int, course_ids: list[int]) -> list[EnrollmentModel]:
        if not course_ids:
            return []
        return list(
            self.db.execute(
                select(EnrollmentModel).where(
                    EnrollmentModel.user_id == user_id,
                    EnrollmentModel.course_id.in_(course_ids),
                )
            ).scalars().all()
        )

    def insert_missing(self, user_id: int, course_ids: list[int]) -> int:
        """Insert one enrollment per course, skipping pairs that already exist.

        A collision on (user_id, course_id) counts as already satisfied.
        Returns the number of rows actually inserted.
        """
        if not course_ids:
            return 0

        now = datetime.now(timezone.utc)
        rows = [
            {"user_id": user_id, "course_id": c, "completed_lessons": [], "created_at": now}
            for c in course_ids
        ]

        dialect = self.db.get_bind().dialect.name
        dialect_insert = _UPSERT_DIALECTS.get(dialect)

        if dialect_insert is not None:
            stmt = dialect_insert(EnrollmentModel).values(rows).on_conflict_do_nothing(
                index_elements=["user_id", "course_id"]
            )
            return self.db.execute(stmt).rowcount

        #other backends: filter inside the same transaction, the unique
        #constraint still rejects a racing duplicate and rolls the unit back
        existing = {e.course_id for e in self.find_for_courses(user_id, course_ids)}
        missing = [r for r in rows if r["course_id"] not in existing]
        if missing:
            self.db.execute(insert(EnrollmentModel), missing)
        return len(missing)
