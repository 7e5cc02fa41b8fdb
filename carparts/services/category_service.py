from typing import Optional, List, Dict, Any
from uuid import uuid4

from sqlalchemy.orm import Session

from carparts.models.category import Category
from carparts.errors import ConflictError, NotFoundError, ValidationError


class CategoryService:
    """
    Owner-scoped CRUD over categories.
    Deleting a category never touches the parts that reference it.
    """

    EDITABLE_FIELDS = {"name", "description"}

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self, *, user_id: str) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.user_id == user_id)
            .order_by(Category.name.asc())
            .all()
        )

    def find_category(self, *, user_id: str, category_id: str) -> Optional[Category]:
        return (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.user_id == user_id)
            .first()
        )

    def get_category(self, *, user_id: str, category_id: str) -> Category:
        category = self.find_category(user_id=user_id, category_id=category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(
        self,
        *,
        user_id: str,
        name: str,
        description: Optional[str] = None,
    ) -> Category:
        self._assert_name_free(user_id=user_id, name=name)

        category = Category(
            id=str(uuid4()),
            user_id=user_id,
            name=name,
            description=description,
        )
        self.db.add(category)
        self.db.flush()
        return category

    def update_category(
        self,
        *,
        user_id: str,
        category_id: str,
        updates: Dict[str, Any],
    ) -> Category:
        category = self.get_category(user_id=user_id, category_id=category_id)

        for field, new_value in updates.items():
            if field not in self.EDITABLE_FIELDS:
                raise ValidationError(f"Field '{field}' is not editable")
            if field == "name" and not new_value:
                raise ValidationError("Category name cannot be empty")
            if field == "name" and new_value != category.name:
                self._assert_name_free(user_id=user_id, name=new_value)
            setattr(category, field, new_value)

        self.db.flush()
        return category

    def delete_category(self, *, user_id: str, category_id: str) -> None:
        category = self.get_category(user_id=user_id, category_id=category_id)
        self.db.delete(category)
        self.db.flush()

    def _assert_name_free(self, *, user_id: str, name: str) -> None:
        exists = (
            self.db.query(Category)
            .filter(Category.name == name, Category.user_id == user_id)
            .first()
        )
        if exists:
            raise ConflictError("Category already exists")
