# carparts/tests/factories.py
from decimal import Decimal

from carparts.db.session import get_session
from carparts.db.enums import UserStatus
from carparts.models.part import Part
from carparts.services.user_service import UserService
from carparts.services.category_service import CategoryService
from carparts.services.part_service import PartService

PASSWORD = "secret123"


def make_user(username, status=UserStatus.verified, admin=False):
    db = get_session()
    try:
        user_service = UserService(db)
        email = f"{username}@example.com"
        if admin:
            user = user_service.create_admin(username=username, email=email, password=PASSWORD)
        else:
            user = user_service.create_user(
                username=username, email=email, password=PASSWORD, status=status,
            )
        db.commit()
        return user.id
    finally:
        db.close()


def login(client, username):
    return client.post(
        "/auth/login",
        json={"email": f"{username}@example.com", "password": PASSWORD},
    )


def seed_part(user_id, *, part_number="P-1", barcode=None, quantity=10,
              min_quantity=5, selling_price="5.00", name="Brake Pad"):
    """Create a category (once per user) and one part; returns the part id."""
    db = get_session()
    try:
        category_service = CategoryService(db)
        categories = category_service.list_categories(user_id=user_id)
        if categories:
            category = categories[0]
        else:
            category = category_service.create_category(user_id=user_id, name="Brakes")
        part = PartService(db, category_service).create_part(
            user_id=user_id,
            name=name,
            category_id=category.id,
            part_number=part_number,
            barcode=barcode,
            buying_price=Decimal("1.00"),
            selling_price=Decimal(selling_price),
            quantity=quantity,
            min_quantity=min_quantity,
        )
        db.commit()
        return part.id
    finally:
        db.close()


def part_quantity(part_id):
    db = get_session()
    try:
        return db.get(Part, part_id).quantity
    finally:
        db.close()
