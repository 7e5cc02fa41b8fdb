# carparts/schemas/requests.py
from typing import List, Optional, Type, TypeVar
from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from carparts.db.enums import OrderStatus, PaymentMethod, UserStatus
from carparts.errors import ValidationError
from carparts.services.order_service import OrderLine
from carparts.services.receipt_service import ReceiptInput, ReceiptLineInput


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


T = TypeVar("T", bound=RequestModel)


def parse_body(model: Type[T], payload) -> T:
    '''Validate a JSON body, mapping pydantic errors to a 400 ValidationError.'''
    if payload is None:
        payload = {}
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid request")
        raise ValidationError(f"{location}: {message}" if location else message)


# =========
# 👤 Auth / admin
# =========
class RegisterRequest(RequestModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class LoginRequest(RequestModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminCreateRequest(RegisterRequest):
    secret_key: Optional[str] = None


class UserStatusUpdateRequest(RequestModel):
    user_id: str = Field(min_length=1)
    status: UserStatus


# =========
# 🗂 Inventory
# =========
class CategoryCreateRequest(RequestModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class CategoryUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class PartCreateRequest(RequestModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category_id: str = Field(min_length=1)
    buying_price: Decimal = Field(ge=0, decimal_places=2)
    selling_price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(ge=0)
    min_quantity: int = Field(default=5, ge=0)
    manufacturer: Optional[str] = None
    part_number: str = Field(min_length=1)
    barcode: Optional[str] = None


class PartUpdateRequest(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[str] = Field(default=None, min_length=1)
    buying_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    selling_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(default=None, ge=0)
    min_quantity: Optional[int] = Field(default=None, ge=0)
    manufacturer: Optional[str] = None
    part_number: Optional[str] = Field(default=None, min_length=1)
    barcode: Optional[str] = None


# =========
# 🧾 Orders
# =========
class OrderItemRequest(RequestModel):
    part: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0, decimal_places=2)


class OrderCreateRequest(RequestModel):
    items: List[OrderItemRequest] = Field(min_length=1)
    total_amount: Decimal = Field(ge=0, decimal_places=2)
    status: OrderStatus = OrderStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    car_registration: Optional[str] = None
    cash_received: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)

    def to_lines(self) -> List[OrderLine]:
        return [
            OrderLine(part_id=item.part, quantity=item.quantity, price=item.price)
            for item in self.items
        ]


class OrderStatusUpdateRequest(RequestModel):
    status: OrderStatus
    payment_method: Optional[PaymentMethod] = None
    cash_received: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


class ReceiptPartRequest(RequestModel):
    name: Optional[str] = None
    part_number: Optional[str] = None


class ReceiptItemRequest(RequestModel):
    part: ReceiptPartRequest
    quantity: int = Field(ge=0)
    price: Decimal


class ReceiptPreviewRequest(RequestModel):
    order_number: str = Field(min_length=1)
    items: List[ReceiptItemRequest]
    total_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    car_registration: Optional[str] = None
    cash_received: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None

    def to_receipt_input(self) -> ReceiptInput:
        return ReceiptInput(
            order_number=self.order_number,
            items=[
                ReceiptLineInput(
                    name=item.part.name,
                    part_number=item.part.part_number,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in self.items
            ],
            total_amount=self.total_amount,
            status=self.status,
            created_at=self.created_at,
            payment_method=self.payment_method,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            customer_email=self.customer_email,
            car_registration=self.car_registration,
            cash_received=self.cash_received,
            change_amount=self.change_amount,
        )


# =========
# 🛒 Barcode cart
# =========
class CartScanRequest(RequestModel):
    barcode: str = Field(min_length=1)


class CartQuantityRequest(RequestModel):
    quantity: int


class CartCheckoutRequest(RequestModel):
    payment_method: PaymentMethod
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    cash_received: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
