# carparts/models/part.py
from typing import Optional
from decimal import Decimal

from sqlalchemy import String, Numeric, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carparts.db.base import Base
from carparts.models.mixins.owned_record import OwnedRecordMixin


class Part(Base, OwnedRecordMixin):
    """
    Stocked car part.

    quantity is decremented by every order that references the part and is
    never floored at zero (oversell is tracked as negative stock).
    """

    __tablename__ = "parts"

    # =========
    # 🔤 Description
    # =========
    name :Mapped[str] = mapped_column(String(255), nullable=False, comment="Part name")
    description :Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    manufacturer :Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # no FK: deleting a category leaves the reference dangling
    category_id :Mapped[str] = mapped_column(String(36), nullable=False, comment="Category ID")

    # =========
    # 🏷 Identifiers (unique per user)
    # =========
    part_number :Mapped[str] = mapped_column(String(100), nullable=False)
    barcode :Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="Null when absent")

    # =========
    # 💰 Pricing
    # =========
    buying_price :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_price :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # =========
    # 🔢 Stock
    # =========
    quantity :Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_quantity :Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    __table_args__ = (
        UniqueConstraint("part_number", "user_id", name="uq_part_number_user"),
        UniqueConstraint("barcode", "user_id", name="uq_part_barcode_user"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def __repr__(self) -> str:
        return (
            f"<Part id={self.id} "
            f"part_number={self.part_number} "
            f"quantity={self.quantity}>"
        )
