# app/services/notification_service.py
from app.celery_worker import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Enrollment confirmations.
    Sent through celery after the settlement commit, never inside it.
    """

    @staticmethod
    def send_enrollment_notification(user_id: int, course_ids: list[int], reference: str):
        send_enrollment_notification_task.delay(user_id, list(course_ids), reference)


@celery_app.task(name="app.services.notification_service.send_enrollment_notification_task")
def send_enrollment_notification_task(user_id: int, course_ids: list[int], reference: str):
    """
    Celery task - the mail provider hook goes here.
    For now it only logs.
    """
    logger.info(
        f"[NOTIFICATION] User {user_id}: enrolled in courses {course_ids} (payment {reference})"
    )

    return {"user_id": user_id, "course_ids": course_ids, "reference": reference, "status": "sent"}
