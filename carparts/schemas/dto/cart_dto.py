from typing import List

from carparts.services.barcode_cart import BarcodeCart, CartEntry
from carparts.schemas.dto.base_dto import BaseDTO


class CartPartDTO(BaseDTO):
    id: str
    name: str
    part_number: str
    price: float


class CartEntryDTO(BaseDTO):
    part: CartPartDTO
    quantity: int
    line_total: float

    @classmethod
    def from_domain_model(cls, entry: CartEntry) -> "CartEntryDTO":
        return cls(
            part=CartPartDTO(
                id=entry.part.id,
                name=entry.part.name,
                part_number=entry.part.part_number,
                price=float(entry.part.price),
            ),
            quantity=entry.quantity,
            line_total=float(entry.line_total),
        )


class CartDTO(BaseDTO):
    items: List[CartEntryDTO]
    total_amount: float
    item_count: int

    @classmethod
    def from_domain_model(cls, cart: BarcodeCart) -> "CartDTO":
        return cls(
            items=[CartEntryDTO.from_domain_model(e) for e in cart.entries],
            total_amount=float(cart.total_amount),
            item_count=sum(e.quantity for e in cart.entries),
        )
