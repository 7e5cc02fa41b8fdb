from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from carparts.models.part import Part
from carparts.services.order_service import OrderLine
from carparts.errors import ValidationError


@dataclass(frozen=True)
class CartPart:
    """Snapshot of a part taken when it was scanned."""
    id: str
    name: str
    part_number: str
    price: Decimal

    @classmethod
    def from_part(cls, part: Part) -> "CartPart":
        return cls(
            id=part.id,
            name=part.name,
            part_number=part.part_number,
            price=Decimal(part.selling_price),
        )


@dataclass
class CartEntry:
    part: CartPart
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.part.price * self.quantity


class BarcodeCart:
    """
    Cart built by scanning barcodes at the till.

    Entries keep insertion order and are keyed by part id. total_amount is
    maintained incrementally by every transition; it must always equal
    sum(price * quantity) over the entries.
    """

    def __init__(self):
        self.entries: List[CartEntry] = []
        self.total_amount: Decimal = Decimal("0")

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def find(self, part_id: str) -> Optional[CartEntry]:
        for entry in self.entries:
            if entry.part.id == part_id:
                return entry
        return None

    # ======================================================
    # 🔁 Transitions
    # ======================================================

    def scan(self, part: CartPart) -> CartEntry:
        '''A scan resolved to a part: +1 of it, appended on first scan.'''
        entry = self.find(part.id)
        if entry is not None:
            entry.quantity += 1
        else:
            entry = CartEntry(part=part, quantity=1)
            self.entries.append(entry)
        self.total_amount += entry.part.price
        return entry

    def remove_item(self, part_id: str) -> bool:
        entry = self.find(part_id)
        if entry is None:
            return False
        self.total_amount -= entry.line_total
        self.entries.remove(entry)
        return True

    def set_quantity(self, part_id: str, quantity: int) -> bool:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        entry = self.find(part_id)
        if entry is None:
            return False
        self.total_amount -= entry.line_total
        entry.quantity = quantity
        self.total_amount += entry.line_total
        return True

    def clear(self) -> None:
        self.entries = []
        self.total_amount = Decimal("0")

    # ======================================================
    # 🧾 Checkout
    # ======================================================

    def checkout_items(self) -> List[OrderLine]:
        if self.is_empty:
            raise ValidationError("Cart is empty")
        return [
            OrderLine(part_id=e.part.id, quantity=e.quantity, price=e.part.price)
            for e in self.entries
        ]

    def computed_total(self) -> Decimal:
        return sum((e.line_total for e in self.entries), Decimal("0"))

    # ======================================================
    # 💾 Session state (plain JSON types only)
    # ======================================================

    def to_state(self) -> Dict[str, Any]:
        return {
            "items": [
                {
                    "id": e.part.id,
                    "name": e.part.name,
                    "partNumber": e.part.part_number,
                    "price": str(e.part.price),
                    "quantity": e.quantity,
                }
                for e in self.entries
            ],
            "totalAmount": str(self.total_amount),
        }

    @classmethod
    def from_state(cls, state: Optional[Dict[str, Any]]) -> "BarcodeCart":
        cart = cls()
        if not state:
            return cart
        for raw in state.get("items", []):
            part = CartPart(
                id=raw["id"],
                name=raw["name"],
                part_number=raw["partNumber"],
                price=Decimal(raw["price"]),
            )
            cart.entries.append(CartEntry(part=part, quantity=int(raw["quantity"])))
        cart.total_amount = Decimal(state.get("totalAmount", "0"))
        return cart
