# app/api/routers/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.results import CurrentUser
from app.domain.schemas import UserCreate, UserRead
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserCreate, db: Session = Depends(get_db)):
    """
    Mirrors a user from the identity provider, 409 when the email
    already belongs to another id.
    """
    try:
        return UserService(db).register_user(payload)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/me", response_model=UserRead)
def whoami(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService(db).get_user(user.id)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return UserService(db).get_user(user_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
