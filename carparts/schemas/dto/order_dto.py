from typing import Optional, List
from datetime import datetime

from carparts.models.order import OrderItem
from carparts.services.order_service import ResolvedOrder
from carparts.schemas.dto.base_dto import BaseDTO
from carparts.schemas.dto.part_dto import PartDTO


class OrderItemDTO(BaseDTO):
    part_id: str
    part: Optional[PartDTO] = None  # None when the part no longer exists
    quantity: int
    price: float
    subtotal: float

    @classmethod
    def from_domain_model(cls, item: OrderItem, resolved: ResolvedOrder) -> "OrderItemDTO":
        part = resolved.part_for(item)
        return cls(
            part_id=item.part_id,
            part=PartDTO.from_domain_model(part, resolved.category_for(part)) if part else None,
            quantity=item.quantity,
            price=float(item.price),
            subtotal=float(item.subtotal),
        )


class OrderDTO(BaseDTO):
    id: str
    order_number: str
    items: List[OrderItemDTO]
    total_amount: float

    status: str
    payment_method: Optional[str] = None
    cash_received: Optional[float] = None
    change_amount: Optional[float] = None

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    car_registration: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain_model(cls, resolved: ResolvedOrder) -> "OrderDTO":
        order = resolved.order
        return cls(
            id=order.id,
            order_number=order.order_number,
            items=[OrderItemDTO.from_domain_model(item, resolved) for item in order.items],
            total_amount=float(order.total_amount),
            status=order.status.value,
            payment_method=order.payment_method.value if order.payment_method else None,
            cash_received=float(order.cash_received) if order.cash_received is not None else None,
            change_amount=float(order.change_amount) if order.change_amount is not None else None,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_email=order.customer_email,
            car_registration=order.car_registration,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
