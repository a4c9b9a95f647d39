# app/services/course_client.py
import requests
from requests import RequestException

from app.domain.errors import CatalogUnavailableError
from app.utils.retry import http_retry
from app.utils.settings import COURSE_SERVICE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CourseClient:
    """Read-only access to the course catalog (price, title, published flag)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or COURSE_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    def fetch_course(self, course_id: int) -> dict | None:
        try:
            return self._get_course(course_id)
        except RequestException as e:
            logger.error(f"Course catalog unavailable for course {course_id}: {e}")
            raise CatalogUnavailableError() from e

    @http_retry()
    def _get_course(self, course_id: int) -> dict | None:
        url = f"{self.base_url}/courses/{course_id}"
        logger.info(f"CourseClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()
