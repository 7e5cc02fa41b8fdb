from dataclasses import dataclass, field
from typing import Optional, List, Dict, Callable
from decimal import Decimal
from datetime import datetime
from uuid import uuid4
import random

from sqlalchemy.orm import Session

from carparts.models.order import Order, OrderItem
from carparts.models.part import Part
from carparts.models.category import Category
from carparts.db.enums import OrderStatus, PaymentMethod, AuditEntityType
from carparts.services.audit_log_service import AuditLogService
from carparts.services.inventory_service import InventoryService, InventoryAdjustmentReport
from carparts.services.part_service import PartService
from carparts.errors import NotFoundError, ValidationError, PosError
from carparts.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ORDER_NUMBER_ATTEMPTS = 10


@dataclass(frozen=True)
class OrderLine:
    part_id: str
    quantity: int
    price: Decimal


@dataclass
class ResolvedOrder:
    """An order together with the parts/categories its lines still resolve to."""
    order: Order
    parts: Dict[str, Part] = field(default_factory=dict)
    categories: Dict[str, Category] = field(default_factory=dict)

    def part_for(self, item: OrderItem) -> Optional[Part]:
        return self.parts.get(item.part_id)

    def category_for(self, part: Optional[Part]) -> Optional[Category]:
        if part is None:
            return None
        return self.categories.get(part.category_id)


@dataclass
class OrderCreationResult:
    resolved: ResolvedOrder
    inventory: InventoryAdjustmentReport


def generate_order_number(now: datetime, rng: Callable[[int, int], int] = random.randint) -> str:
    '''ORD-YYMMDD-RRRR, RRRR a random zero-padded 4 digit value.'''
    return f"ORD-{now:%y%m%d}-{rng(0, 9999):04d}"


def compute_change(cash_received: Decimal, total_amount: Decimal) -> Decimal:
    return Decimal(cash_received) - Decimal(total_amount)


class OrderService:
    """
    Order aggregate builder and status/payment transition.

    Responsibilities:
    - validate and persist an order with its line items
    - stamp a unique order number
    - trigger the inventory adjuster (best effort, same transaction)
    - move an order between PENDING / COMPLETED / CANCELLED and record payment
    - resolve line-item parts for display, scoped to the owner

    Transaction boundary belongs to the caller (route layer commits).
    """

    def __init__(
        self,
        db: Session,
        audit_log_service: AuditLogService,
        inventory_service: Optional[InventoryService] = None,
        part_service: Optional[PartService] = None,
        *,
        max_number_attempts: int = DEFAULT_ORDER_NUMBER_ATTEMPTS,
        number_generator: Callable[[datetime], str] = generate_order_number,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.audit_log_service = audit_log_service
        self.inventory_service = inventory_service or InventoryService(db, audit_log_service)
        self.part_service = part_service or PartService(db)
        self.max_number_attempts = max_number_attempts
        self.number_generator = number_generator
        self.clock = clock

    # ======================================================
    # 🧾 Create
    # ======================================================

    def create_order(
        self,
        *,
        user_id: str,
        items: List[OrderLine],
        total_amount: Decimal,
        status: OrderStatus = OrderStatus.PENDING,
        payment_method: Optional[PaymentMethod] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        customer_email: Optional[str] = None,
        car_registration: Optional[str] = None,
        cash_received: Optional[Decimal] = None,
    ) -> OrderCreationResult:
        """
        Persist a new order and decrement stock for each line.

        :param user_id: owner of the order
        :param items: non-empty list of order lines
        :param total_amount: total as computed by the client (not re-verified)
        :param status: PENDING, or COMPLETED for the barcode fast checkout
        :param cash_received: only used when created COMPLETED with CASH
        :return: the part-enriched order and the inventory adjustment outcome
        :rtype: OrderCreationResult
        """
        # 1️⃣ validate lines
        self._validate_lines(items)

        # 2️⃣ order number + timestamp from the same clock reading
        now = self.clock()
        order_number = self._next_order_number(now)

        order = Order(
            id=str(uuid4()),
            user_id=user_id,
            order_number=order_number,
            total_amount=Decimal(total_amount),
            status=status,
            payment_method=payment_method,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_email=customer_email,
            car_registration=car_registration,
            created_at=now,
            updated_at=now,
        )
        order.items = [
            OrderItem(
                position=index,
                part_id=line.part_id,
                quantity=line.quantity,
                price=Decimal(line.price),
            )
            for index, line in enumerate(items)
        ]

        if status == OrderStatus.COMPLETED and payment_method == PaymentMethod.CASH and cash_received:
            order.cash_received = Decimal(cash_received)
            order.change_amount = compute_change(cash_received, order.total_amount)

        # 3️⃣ persist
        self.db.add(order)
        self.db.flush()

        self.audit_log_service.record_create(
            entity_type=AuditEntityType.Order,
            entity_id=order.id,
            operator_id=user_id,
        )
        logger.info(
            "Order %s created for user %s: %d item(s), total %s, status %s",
            order.order_number, user_id, len(items), order.total_amount, status.value,
        )

        # 4️⃣ decrement stock, best effort
        inventory = self.inventory_service.decrement_for_order(
            user_id=user_id,
            lines=[(line.part_id, line.quantity) for line in items],
        )

        return OrderCreationResult(
            resolved=self.resolve(order),
            inventory=inventory,
        )

    # ======================================================
    # 🔎 Reads
    # ======================================================

    def find_order(self, *, user_id: str, order_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.user_id == user_id)
            .first()
        )

    def get_order(self, *, user_id: str, order_id: str) -> Order:
        order = self.find_order(user_id=user_id, order_id=order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_orders(self, *, user_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        query = self.db.query(Order).filter(Order.user_id == user_id)
        if status is not None:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    def resolve(self, order: Order) -> ResolvedOrder:
        return self.resolve_many([order])[0]

    def resolve_many(self, orders: List[Order]) -> List[ResolvedOrder]:
        '''
        Attach the parts (and their categories) referenced by each order's
        lines, looked up under the order owner only. Deleted parts stay
        unresolved.
        '''
        resolved: List[ResolvedOrder] = []
        by_user: Dict[str, List[Order]] = {}
        for order in orders:
            by_user.setdefault(order.user_id, []).append(order)

        lookup: Dict[str, tuple] = {}
        for user_id, user_orders in by_user.items():
            part_ids = {item.part_id for o in user_orders for item in o.items}
            parts = self.part_service.resolve_parts(user_id=user_id, part_ids=part_ids)
            categories = self.part_service.resolve_categories(user_id=user_id, parts=parts.values())
            lookup[user_id] = (parts, categories)

        for order in orders:
            parts, categories = lookup[order.user_id]
            resolved.append(ResolvedOrder(order=order, parts=parts, categories=categories))
        return resolved

    # ======================================================
    # 🔁 Status / payment transition
    # ======================================================

    def update_order_status(
        self,
        *,
        user_id: str,
        order_id: str,
        status: OrderStatus,
        payment_method: Optional[PaymentMethod] = None,
        cash_received: Optional[Decimal] = None,
    ) -> ResolvedOrder:
        """
        Apply a status change and optional payment details.

        changeAmount = cashReceived - totalAmount, using the total read
        before any field is changed. cashReceived >= total is not checked.
        Stock is not restored when an order is cancelled.

        :param status: new status
        :param payment_method: CASH or CARD, left unchanged when None
        :param cash_received: amount tendered, stored when given
        """
        order = self.get_order(user_id=user_id, order_id=order_id)

        previous_total = order.total_amount
        change_amount = None
        if cash_received and payment_method == PaymentMethod.CASH:
            change_amount = compute_change(cash_received, previous_total)

        changes = {"status": status}
        if payment_method is not None:
            changes["payment_method"] = payment_method
        if cash_received:
            changes["cash_received"] = Decimal(cash_received)
        if change_amount is not None:
            changes["change_amount"] = change_amount

        for field_name, new_value in changes.items():
            old_value = getattr(order, field_name)
            if old_value == new_value:
                continue
            setattr(order, field_name, new_value)
            self.audit_log_service.record_update(
                entity_type=AuditEntityType.Order,
                entity_id=order.id,
                changed_attribute=field_name,
                before_value=old_value,
                after_value=new_value,
                operator_id=user_id,
            )

        self.db.flush()
        logger.info("Order %s -> %s", order.order_number, status.value)
        return self.resolve(order)

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _validate_lines(self, items: List[OrderLine]) -> None:
        if not items:
            raise ValidationError("Items are required")
        for index, line in enumerate(items):
            if not line.part_id:
                raise ValidationError(f"Item {index}: part is required")
            if line.quantity is None or line.quantity < 1:
                raise ValidationError(f"Item {index}: quantity must be at least 1")
            if line.price is None or Decimal(line.price) < 0:
                raise ValidationError(f"Item {index}: price must not be negative")

    def _next_order_number(self, now: datetime) -> str:
        '''
        Draw order numbers until one is unused. The random suffix only has
        10,000 values per day, so collisions are retried instead of ignored.
        '''
        for _ in range(self.max_number_attempts):
            candidate = self.number_generator(now)
            taken = (
                self.db.query(Order.id)
                .filter(Order.order_number == candidate)
                .first()
            )
            if not taken:
                return candidate
            logger.warning("Order number collision on %s, retrying", candidate)
        raise PosError("Could not allocate a unique order number")
