#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_course_client, get_current_user
from app.data.database import get_db
from app.domain.errors import DomainError
from app.domain.results import CurrentUser
from app.domain.schemas import CartCountOut, CartOut, ItemIn
from app.services.cart_service import CartService
from app.services.course_client import CourseClient

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db), course_client: CourseClient = Depends(get_course_client)):
    return CartService(db=db, course_client=course_client)


@router.get("", response_model=CartOut)
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.get_cart(user.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/count", response_model=CartCountOut)
def count_items(
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return {"count": svc.count_items(user.id)}


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_course(user.id, payload.course_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/items/{course_id}", response_model=CartOut)
def remove_item(
    course_id: int,
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_course(user.id, course_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("", response_model=CartOut)
def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.clear_cart(user.id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
