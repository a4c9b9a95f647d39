# app/services/user_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.errors import EmailAlreadyRegisteredError, UserNotFoundError
from app.domain.results import CurrentUser
from app.domain.schemas import UserCreate, UserRead
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """
    Identity lives upstream, this only mirrors id and email so checkout
    can address the gateway and routes can resolve X-User-Id.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def register_user(self, payload: UserCreate) -> UserRead:
        #replaying the same registration is a no-op
        existing = self.repo.get_user(payload.id)
        if existing and existing.email == payload.email:
            return UserRead.model_validate(existing)

        if existing or self.repo.get_user_by_email(payload.email):
            raise EmailAlreadyRegisteredError(payload.email)

        try:
            user = self.repo.add_user(UserModel(id=payload.id, name=payload.name, email=payload.email))
            self.repo.commit()
        except IntegrityError as e:
            #concurrent registration took the id or the email
            self.repo.rollback()
            raise EmailAlreadyRegisteredError(payload.email) from e

        logger.info(f"Registered user {user.id}")
        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return UserRead.model_validate(user)

    def resolve_identity(self, user_id: int) -> CurrentUser | None:
        user = self.repo.get_user(user_id)
        if not user:
            return None
        return CurrentUser(id=user.id, email=user.email)
