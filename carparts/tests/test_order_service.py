# carparts/tests/test_order_service.py
import re
from datetime import datetime
from decimal import Decimal

import pytest

from carparts.db.enums import OrderStatus, PaymentMethod, AuditAction
from carparts.errors import NotFoundError, PosError, ValidationError
from carparts.models.part import Part
from carparts.services.audit_log_service import AuditLogService
from carparts.services.inventory_service import InventoryService
from carparts.services.order_service import (
    OrderLine,
    OrderService,
    generate_order_number,
    compute_change,
)
from carparts.tests.factories import seed_part, part_quantity


def build_service(db, **kwargs):
    return OrderService(db, AuditLogService(db), **kwargs)


def test_order_number_shape_uses_creation_date():
    number = generate_order_number(datetime(2024, 3, 7, 10, 0), rng=lambda a, b: 42)
    assert number == "ORD-240307-0042"
    assert re.fullmatch(r"ORD-\d{6}-\d{4}", generate_order_number(datetime.now()))


def test_compute_change():
    assert compute_change(Decimal("20"), Decimal("15.50")) == Decimal("4.50")


def test_create_order_decrements_stock(db, alice_id):
    part_id = seed_part(alice_id, quantity=10)
    clock = lambda: datetime(2024, 5, 1, 9, 30)

    result = build_service(db, clock=clock).create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=3, price=Decimal("5.00"))],
        total_amount=Decimal("15.00"),
    )
    db.commit()

    order = result.resolved.order
    assert order.order_number.startswith("ORD-240501-")
    assert order.created_at == datetime(2024, 5, 1, 9, 30)
    assert order.status == OrderStatus.PENDING
    assert [item.position for item in order.items] == [0]
    assert result.inventory.adjusted == [part_id]
    assert result.resolved.part_for(order.items[0]).id == part_id
    assert part_quantity(part_id) == 7


def test_create_order_requires_items(db, alice_id):
    with pytest.raises(ValidationError):
        build_service(db).create_order(user_id=alice_id, items=[], total_amount=Decimal("0"))


def test_create_order_rejects_zero_quantity(db, alice_id):
    part_id = seed_part(alice_id)
    with pytest.raises(ValidationError):
        build_service(db).create_order(
            user_id=alice_id,
            items=[OrderLine(part_id=part_id, quantity=0, price=Decimal("1"))],
            total_amount=Decimal("0"),
        )


def test_other_users_part_is_skipped_not_decremented(db, alice_id, bob_id):
    bobs_part = seed_part(bob_id, quantity=10)

    result = build_service(db).create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=bobs_part, quantity=2, price=Decimal("5.00"))],
        total_amount=Decimal("10.00"),
    )
    db.commit()

    assert result.inventory.skipped == [bobs_part]
    assert result.inventory.adjusted == []
    assert part_quantity(bobs_part) == 10
    # the line stays but does not resolve to bob's part
    assert result.resolved.part_for(result.resolved.order.items[0]) is None


def test_missing_part_is_skipped_and_the_rest_still_applies(db, alice_id):
    part_id = seed_part(alice_id, quantity=4)

    result = build_service(db).create_order(
        user_id=alice_id,
        items=[
            OrderLine(part_id="does-not-exist", quantity=1, price=Decimal("1.00")),
            OrderLine(part_id=part_id, quantity=1, price=Decimal("5.00")),
        ],
        total_amount=Decimal("6.00"),
    )
    db.commit()

    assert result.inventory.skipped == ["does-not-exist"]
    assert result.inventory.adjusted == [part_id]
    assert part_quantity(part_id) == 3


def test_failed_decrement_is_reported_and_order_commits(db, alice_id, monkeypatch):
    first = seed_part(alice_id, part_number="P-1", quantity=5)
    second = seed_part(alice_id, part_number="P-2", quantity=5)

    original = InventoryService._decrement

    def flaky(self, *, user_id, part_id, quantity):
        if part_id == first:
            raise RuntimeError("disk on fire")
        return original(self, user_id=user_id, part_id=part_id, quantity=quantity)

    monkeypatch.setattr(InventoryService, "_decrement", flaky)

    service = build_service(db)
    result = service.create_order(
        user_id=alice_id,
        items=[
            OrderLine(part_id=first, quantity=1, price=Decimal("5.00")),
            OrderLine(part_id=second, quantity=2, price=Decimal("5.00")),
        ],
        total_amount=Decimal("15.00"),
    )
    db.commit()

    assert result.inventory.failed == [first]
    assert result.inventory.adjusted == [second]
    assert part_quantity(first) == 5
    assert part_quantity(second) == 3
    assert service.find_order(user_id=alice_id, order_id=result.resolved.order.id) is not None


def test_oversell_goes_negative_and_is_audited(db, alice_id):
    part_id = seed_part(alice_id, quantity=1)
    audit = AuditLogService(db)

    result = OrderService(db, audit).create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=3, price=Decimal("5.00"))],
        total_amount=Decimal("15.00"),
    )
    db.commit()

    assert result.inventory.negative_stock == [part_id]
    assert part_quantity(part_id) == -2
    logs = audit.list_for_entity(part_id)
    assert [(log.action, log.before_value, log.after_value) for log in logs] == [
        (AuditAction.system, 1, -2)
    ]


def test_completed_cash_order_stores_change(db, alice_id):
    part_id = seed_part(alice_id)

    result = build_service(db).create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=1, price=Decimal("15.50"))],
        total_amount=Decimal("15.50"),
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.CASH,
        cash_received=Decimal("20.00"),
    )

    assert result.resolved.order.change_amount == Decimal("4.50")


def test_order_number_collision_is_retried(db, alice_id):
    part_id = seed_part(alice_id, quantity=100)
    numbers = iter(["ORD-240101-0001", "ORD-240101-0001", "ORD-240101-0002"])
    service = build_service(db, number_generator=lambda now: next(numbers))
    line = [OrderLine(part_id=part_id, quantity=1, price=Decimal("1.00"))]

    first = service.create_order(user_id=alice_id, items=line, total_amount=Decimal("1"))
    second = service.create_order(user_id=alice_id, items=line, total_amount=Decimal("1"))

    assert first.resolved.order.order_number == "ORD-240101-0001"
    assert second.resolved.order.order_number == "ORD-240101-0002"


def test_order_number_retry_is_bounded(db, alice_id):
    part_id = seed_part(alice_id)
    service = build_service(
        db,
        number_generator=lambda now: "ORD-240101-0001",
        max_number_attempts=3,
    )
    line = [OrderLine(part_id=part_id, quantity=1, price=Decimal("1.00"))]
    service.create_order(user_id=alice_id, items=line, total_amount=Decimal("1"))

    with pytest.raises(PosError):
        service.create_order(user_id=alice_id, items=line, total_amount=Decimal("1"))


def test_status_update_computes_change_from_stored_total(db, alice_id):
    part_id = seed_part(alice_id)
    service = build_service(db)
    created = service.create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=1, price=Decimal("15.50"))],
        total_amount=Decimal("15.50"),
    )
    db.commit()

    resolved = service.update_order_status(
        user_id=alice_id,
        order_id=created.resolved.order.id,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.CASH,
        cash_received=Decimal("20"),
    )
    db.commit()

    order = resolved.order
    assert order.status == OrderStatus.COMPLETED
    assert order.cash_received == Decimal("20.00")
    assert order.change_amount == Decimal("4.50")
    assert order.total_amount == Decimal("15.50")
    # status change does not touch stock again
    assert part_quantity(part_id) == 9


def test_card_payment_has_no_change(db, alice_id):
    part_id = seed_part(alice_id)
    service = build_service(db)
    created = service.create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=1, price=Decimal("10"))],
        total_amount=Decimal("10"),
    )

    resolved = service.update_order_status(
        user_id=alice_id,
        order_id=created.resolved.order.id,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.CARD,
    )

    assert resolved.order.payment_method == PaymentMethod.CARD
    assert resolved.order.change_amount is None


def test_cancel_does_not_restock(db, alice_id):
    part_id = seed_part(alice_id, quantity=10)
    service = build_service(db)
    created = service.create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=4, price=Decimal("5"))],
        total_amount=Decimal("20"),
    )
    service.update_order_status(
        user_id=alice_id,
        order_id=created.resolved.order.id,
        status=OrderStatus.CANCELLED,
    )
    db.commit()

    assert part_quantity(part_id) == 6


def test_orders_are_invisible_to_other_users(db, alice_id, bob_id):
    part_id = seed_part(alice_id)
    service = build_service(db)
    created = service.create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=1, price=Decimal("5"))],
        total_amount=Decimal("5"),
    )
    db.commit()

    assert service.list_orders(user_id=bob_id) == []
    with pytest.raises(NotFoundError):
        service.get_order(user_id=bob_id, order_id=created.resolved.order.id)
    with pytest.raises(NotFoundError):
        service.update_order_status(
            user_id=bob_id,
            order_id=created.resolved.order.id,
            status=OrderStatus.CANCELLED,
        )


def test_deleted_part_leaves_line_unresolved(db, alice_id):
    part_id = seed_part(alice_id)
    service = build_service(db)
    created = service.create_order(
        user_id=alice_id,
        items=[OrderLine(part_id=part_id, quantity=1, price=Decimal("5"))],
        total_amount=Decimal("5"),
    )
    db.commit()

    db.delete(db.get(Part, part_id))
    db.commit()

    order = service.get_order(user_id=alice_id, order_id=created.resolved.order.id)
    resolved = service.resolve(order)
    assert resolved.part_for(order.items[0]) is None
    assert order.items[0].part_id == part_id
