"""
Plain-text receipt rendering.

The renderer accepts exactly two input variants, chosen by the caller:

- PersistedOrder: a stored order plus the parts its lines resolve to.
  Unresolved parts print as "Unknown Part" / "N/A".
- ReceiptInput: a flat, self-contained order shape (e.g. posted by a client
  for a preview). Every line must carry a part name, otherwise rendering
  fails as a whole.

VAT is a fixed 20% of the line subtotals. The TOTAL line always prints the
order's stored total amount, which is not reconciled with subtotal + VAT.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Union

from carparts.models.order import Order
from carparts.models.part import Part
from carparts.db.enums import OrderStatus, PaymentMethod
from carparts.errors import ReceiptRenderError
from carparts.logger import get_logger

logger = get_logger(__name__)

VAT_RATE = Decimal("0.2")
RULE = "-" * 48
HEADER = [
    "                CAR PARTS SYSTEM                ",
    "                123 Auto Parts Street                ",
    "                   City, Country                    ",
    "                Tel: (123) 456-7890                 ",
]
FOOTER = [
    "",
    "            Thank you for your business!",
    "                Please come again",
    RULE,
]
DATE_FORMAT = "%d/%m/%Y, %H:%M:%S"
INDENT = " " * 16


@dataclass(frozen=True)
class ReceiptLineInput:
    name: Optional[str]
    quantity: int
    price: Decimal
    part_number: Optional[str] = None


@dataclass(frozen=True)
class ReceiptInput:
    order_number: str
    items: List[ReceiptLineInput]
    total_amount: Decimal
    status: OrderStatus
    created_at: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    car_registration: Optional[str] = None
    cash_received: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class PersistedOrder:
    order: Order
    parts: Dict[str, Part] = field(default_factory=dict)


ReceiptSource = Union[PersistedOrder, ReceiptInput]


@dataclass(frozen=True)
class _Line:
    name: str
    part_number: str
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


def _money(value) -> str:
    return str(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _lines_from_persisted(source: PersistedOrder) -> List[_Line]:
    lines = []
    for item in source.order.items:
        part = source.parts.get(item.part_id)
        lines.append(
            _Line(
                name=(part.name if part is not None else None) or "Unknown Part",
                part_number=(part.part_number if part is not None else None) or "N/A",
                quantity=item.quantity,
                price=Decimal(item.price),
            )
        )
    return lines


def _lines_from_input(source: ReceiptInput) -> List[_Line]:
    lines = []
    for index, item in enumerate(source.items):
        if not item.name:
            logger.error("Receipt for %s: line %d has no part name", source.order_number, index)
            raise ReceiptRenderError("Part name is missing")
        lines.append(
            _Line(
                name=item.name,
                part_number=item.part_number or "N/A",
                quantity=item.quantity,
                price=Decimal(item.price),
            )
        )
    return lines


def _header_fields(source: ReceiptSource) -> ReceiptInput:
    '''Normalise the order-level fields of either variant.'''
    if isinstance(source, ReceiptInput):
        return source
    order = source.order
    return ReceiptInput(
        order_number=order.order_number,
        items=[],
        total_amount=order.total_amount,
        status=order.status,
        created_at=order.created_at,
        payment_method=order.payment_method,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        car_registration=order.car_registration,
        cash_received=order.cash_received,
        change_amount=order.change_amount,
    )


def format_item_row(line: _Line) -> str:
    name = line.name[:20].ljust(22)
    qty = str(line.quantity).rjust(5)
    price = _money(line.price).rjust(7)
    total = _money(line.subtotal).rjust(8)
    return f"{name}{qty}{price}{total}"


def render_receipt(source: ReceiptSource, *, now: Optional[datetime] = None) -> str:
    """
    Render a fixed-width receipt.

    :param source: PersistedOrder or ReceiptInput
    :param now: date to print when the input carries no creation time
    :raises ReceiptRenderError: a ReceiptInput line has no part name
    """
    if isinstance(source, PersistedOrder):
        lines = _lines_from_persisted(source)
    elif isinstance(source, ReceiptInput):
        lines = _lines_from_input(source)
    else:
        raise TypeError(f"Unsupported receipt source: {type(source).__name__}")

    head = _header_fields(source)
    created_at = head.created_at or now or datetime.now()

    subtotal = sum((line.subtotal for line in lines), Decimal("0"))
    tax = subtotal * VAT_RATE
    total = Decimal(head.total_amount)

    method = head.payment_method.value if head.payment_method else "N/A"
    paid = "PAID" if head.status == OrderStatus.COMPLETED else "UNPAID"

    content: List[str] = list(HEADER)
    content += [
        RULE,
        f"Order #: {head.order_number}",
        f"Date: {created_at.strftime(DATE_FORMAT)}",
        f"Customer: {head.customer_name or 'Walk-in Customer'}",
    ]
    if head.customer_phone:
        content.append(f"Phone: {head.customer_phone}")
    if head.customer_email:
        content.append(f"Email: {head.customer_email}")
    if head.car_registration:
        content.append(f"Car Registration: {head.car_registration}")

    content += [
        RULE,
        "ITEM                  QTY   PRICE   TOTAL",
        RULE,
    ]
    content += [format_item_row(line) for line in lines]
    content += [
        RULE,
        f"Subtotal:{_money(subtotal).rjust(32)}",
        f"VAT (20%):{_money(tax).rjust(31)}",
        RULE,
        f"TOTAL:{_money(total).rjust(35)}",
        RULE,
        "",
        f"{INDENT}Payment Method: {method}",
        f"{INDENT}Payment Status: {paid}",
    ]
    if head.payment_method == PaymentMethod.CASH and head.cash_received:
        content += [
            f"{INDENT}Cash Amount: £{_money(head.cash_received)}",
            f"{INDENT}Change Due: £{_money(head.change_amount or 0)}",
        ]
    content += FOOTER

    return "\n".join(content)
