from typing import Optional, List, Dict, Any, Iterable
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from carparts.models.part import Part
from carparts.models.category import Category
from carparts.services.category_service import CategoryService
from carparts.errors import ConflictError, NotFoundError, ValidationError
from carparts.logger import get_logger

logger = get_logger(__name__)


class PartService:
    """
    Owner-scoped inventory record store.

    Invariants enforced here:
    - (part_number, user) unique
    - (barcode, user) unique when a barcode is present
    - a part references a category owned by the same user
    Stock quantity is only changed by edits and by InventoryService.
    """

    def __init__(self, db: Session, category_service: Optional[CategoryService] = None):
        self.db = db
        self.category_service = category_service or CategoryService(db)

    # ======================================================
    # 🔎 Reads
    # ======================================================

    def _scoped(self, user_id: str):
        return self.db.query(Part).filter(Part.user_id == user_id)

    def list_parts(self, *, user_id: str, low_stock_only: bool = False) -> List[Part]:
        query = self._scoped(user_id)
        if low_stock_only:
            query = query.filter(Part.quantity <= Part.min_quantity)
        return query.order_by(Part.name.asc()).all()

    def list_low_stock(self, *, user_id: str) -> List[Part]:
        return self.list_parts(user_id=user_id, low_stock_only=True)

    def find_part(self, *, user_id: str, part_id: str) -> Optional[Part]:
        return self._scoped(user_id).filter(Part.id == part_id).first()

    def get_part(self, *, user_id: str, part_id: str) -> Part:
        part = self.find_part(user_id=user_id, part_id=part_id)
        if not part:
            raise NotFoundError("Part not found")
        return part

    def get_part_by_barcode(self, *, user_id: str, barcode: str) -> Part:
        part = self._scoped(user_id).filter(Part.barcode == barcode).first()
        if not part:
            raise NotFoundError("Part not found with this barcode")
        return part

    def search_parts(self, *, user_id: str, query: str) -> List[Part]:
        '''
        Case-insensitive substring search over name, description,
        part number and barcode.
        '''
        term = (query or "").strip().lower()
        if not term:
            return []
        # % and _ are matched literally
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        return (
            self._scoped(user_id)
            .filter(
                or_(
                    func.lower(Part.name).like(pattern, escape="\\"),
                    func.lower(Part.description).like(pattern, escape="\\"),
                    func.lower(Part.part_number).like(pattern, escape="\\"),
                    func.lower(Part.barcode).like(pattern, escape="\\"),
                )
            )
            .order_by(Part.name.asc())
            .all()
        )

    def resolve_parts(self, *, user_id: str, part_ids: Iterable[str]) -> Dict[str, Part]:
        '''Map part id -> Part for the ids that still exist under this user.'''
        ids = set(part_ids)
        if not ids:
            return {}
        parts = self._scoped(user_id).filter(Part.id.in_(ids)).all()
        return {p.id: p for p in parts}

    def resolve_categories(self, *, user_id: str, parts: Iterable[Part]) -> Dict[str, Category]:
        ids = {p.category_id for p in parts}
        if not ids:
            return {}
        categories = (
            self.db.query(Category)
            .filter(Category.id.in_(ids), Category.user_id == user_id)
            .all()
        )
        return {c.id: c for c in categories}

    # ======================================================
    # ✍️ Writes
    # ======================================================

    def create_part(
        self,
        *,
        user_id: str,
        name: str,
        category_id: str,
        part_number: str,
        buying_price: Decimal,
        selling_price: Decimal,
        quantity: int,
        min_quantity: int = 5,
        description: Optional[str] = None,
        manufacturer: Optional[str] = None,
        barcode: Optional[str] = None,
    ) -> Part:
        barcode = self._normalize_barcode(barcode)
        self._assert_category(user_id=user_id, category_id=category_id)
        self._assert_part_number_free(user_id=user_id, part_number=part_number)
        if barcode:
            self._assert_barcode_free(user_id=user_id, barcode=barcode)

        part = Part(
            id=str(uuid4()),
            user_id=user_id,
            name=name,
            description=description,
            category_id=category_id,
            buying_price=buying_price,
            selling_price=selling_price,
            quantity=quantity,
            min_quantity=min_quantity,
            manufacturer=manufacturer,
            part_number=part_number,
            barcode=barcode,
        )
        self.db.add(part)
        self.db.flush()
        logger.info("Part created: %s (%s) for user %s", part.part_number, part.id, user_id)
        return part

    def update_part(
        self,
        *,
        user_id: str,
        part_id: str,
        updates: Dict[str, Any],
    ) -> Part:
        '''
        Apply a whitelisted set of field updates.

        :param updates: field name -> new value, already validated by the caller's schema
        '''
        part = self.get_part(user_id=user_id, part_id=part_id)

        for field, new_value in updates.items():
            if field not in self._allowed_edit_fields():
                raise ValidationError(f"Field '{field}' is not editable")
            if new_value is None and field in self._required_fields():
                raise ValidationError(f"Field '{field}' cannot be empty")

            if field == "barcode":
                new_value = self._normalize_barcode(new_value)
                if new_value and new_value != part.barcode:
                    self._assert_barcode_free(user_id=user_id, barcode=new_value)
            elif field == "part_number" and new_value != part.part_number:
                self._assert_part_number_free(user_id=user_id, part_number=new_value)
            elif field == "category_id" and new_value != part.category_id:
                self._assert_category(user_id=user_id, category_id=new_value)

            setattr(part, field, new_value)

        self.db.flush()
        return part

    def delete_part(self, *, user_id: str, part_id: str) -> None:
        # orders keep their part references; they may dangle afterwards
        part = self.get_part(user_id=user_id, part_id=part_id)
        self.db.delete(part)
        self.db.flush()
        logger.info("Part deleted: %s for user %s", part_id, user_id)

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _allowed_edit_fields(self) -> set[str]:
        return {
            "name",
            "description",
            "category_id",
            "buying_price",
            "selling_price",
            "quantity",
            "min_quantity",
            "manufacturer",
            "part_number",
            "barcode",
        }

    def _required_fields(self) -> set[str]:
        return {
            "name",
            "category_id",
            "buying_price",
            "selling_price",
            "quantity",
            "min_quantity",
            "part_number",
        }

    def _normalize_barcode(self, barcode: Optional[str]) -> Optional[str]:
        if barcode is None:
            return None
        barcode = barcode.strip()
        return barcode or None

    def _assert_category(self, *, user_id: str, category_id: str) -> None:
        if not self.category_service.find_category(user_id=user_id, category_id=category_id):
            raise ValidationError("Category not found")

    def _assert_part_number_free(self, *, user_id: str, part_number: str) -> None:
        if self._scoped(user_id).filter(Part.part_number == part_number).first():
            raise ConflictError("Part number already exists")

    def _assert_barcode_free(self, *, user_id: str, barcode: str) -> None:
        if self._scoped(user_id).filter(Part.barcode == barcode).first():
            raise ConflictError("Barcode already exists")
