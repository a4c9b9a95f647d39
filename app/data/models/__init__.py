#import all models so SQLAlchemy registers them in Base.metadata

from app.data.models.user import UserModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.payment import PaymentModel, PaymentReferenceModel
from app.data.models.enrollment import EnrollmentModel

__all__ = [
    "UserModel",
    "CartModel",
    "CartItemModel",
    "PaymentModel",
    "PaymentReferenceModel",
    "EnrollmentModel",
]
