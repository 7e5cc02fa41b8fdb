from typing import Optional
from datetime import datetime

from carparts.models.part import Part
from carparts.models.category import Category
from carparts.schemas.dto.base_dto import BaseDTO
from carparts.schemas.dto.category_dto import CategoryDTO


class PartDTO(BaseDTO):
    id: str
    name: str
    description: Optional[str] = None
    category_id: str
    category: Optional[CategoryDTO] = None  # None when the category was deleted

    buying_price: float
    selling_price: float
    price: float  # selling price, used by the till

    quantity: int
    min_quantity: int
    low_stock: bool

    manufacturer: Optional[str] = None
    part_number: str
    barcode: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain_model(cls, part: Part, category: Optional[Category] = None) -> "PartDTO":
        return cls(
            id=part.id,
            name=part.name,
            description=part.description,
            category_id=part.category_id,
            category=CategoryDTO.from_domain_model(category) if category else None,
            buying_price=float(part.buying_price or 0),
            selling_price=float(part.selling_price or 0),
            price=float(part.selling_price or 0),
            quantity=part.quantity,
            min_quantity=part.min_quantity,
            low_stock=part.is_low_stock,
            manufacturer=part.manufacturer,
            part_number=part.part_number,
            barcode=part.barcode,
            created_at=part.created_at,
            updated_at=part.updated_at,
        )
