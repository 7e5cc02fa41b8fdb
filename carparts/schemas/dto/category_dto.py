from typing import Optional
from datetime import datetime

from carparts.models.category import Category
from carparts.schemas.dto.base_dto import BaseDTO


class CategoryDTO(BaseDTO):
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain_model(cls, category: Category) -> "CategoryDTO":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )
