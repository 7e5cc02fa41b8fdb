# carparts/models/order.py
from typing import List, Optional
from decimal import Decimal

from sqlalchemy import String, Numeric, Integer, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carparts.db.base import Base
from carparts.db.enums import OrderStatus, PaymentMethod
from carparts.models.mixins.owned_record import OwnedRecordMixin


class Order(Base, OwnedRecordMixin):
    """
    Sales order. Line items are fixed at creation; only status and payment
    fields change afterwards.

    total_amount is taken from the client and is not recomputed from the
    line items.
    """

    __tablename__ = "orders"

    order_number :Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        comment="ORD-YYMMDD-RRRR",
    )

    total_amount :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # =========
    # 📌 Status & payment
    # =========
    status :Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    payment_method :Mapped[Optional[PaymentMethod]] = mapped_column(
        Enum(PaymentMethod, name="payment_method"),
        nullable=True,
    )
    cash_received :Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    change_amount :Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # =========
    # 👤 Customer (all optional)
    # =========
    customer_name :Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone :Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_email :Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    car_registration :Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    items :Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} "
            f"number={self.order_number} "
            f"status={self.status.value} "
            f"total={self.total_amount}>"
        )


class OrderItem(Base):
    """One line of an order; price is captured at order time."""

    __tablename__ = "order_items"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id :Mapped[str] = mapped_column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position :Mapped[int] = mapped_column(Integer, nullable=False, comment="Index within the order")

    # no FK: the part may be deleted later
    part_id :Mapped[str] = mapped_column(String(36), nullable=False)
    quantity :Mapped[int] = mapped_column(Integer, nullable=False)
    price :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="Unit price at order time")

    order :Mapped["Order"] = relationship(back_populates="items")

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity
