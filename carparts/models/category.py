# carparts/models/category.py
from typing import Optional

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carparts.db.base import Base
from carparts.models.mixins.owned_record import OwnedRecordMixin


class Category(Base, OwnedRecordMixin):
    __tablename__ = "categories"

    name :Mapped[str] = mapped_column(String(100), nullable=False, comment="Category name, unique per user")
    description :Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="Free text description")

    __table_args__ = (
        UniqueConstraint("name", "user_id", name="uq_category_name_user"),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name}>"
