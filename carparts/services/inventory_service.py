from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from carparts.models.part import Part
from carparts.db.enums import AuditEntityType
from carparts.services.audit_log_service import AuditLogService
from carparts.logger import get_logger

logger = get_logger(__name__)


@dataclass
class InventoryAdjustmentReport:
    """Outcome of decrementing stock for one order, per part id."""
    adjusted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)   # part not found under the owner
    failed: List[str] = field(default_factory=list)    # decrement raised; rolled back to its savepoint
    negative_stock: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "adjusted": list(self.adjusted),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
            "negativeStock": list(self.negative_stock),
        }


class InventoryService:
    """
    Inventory adjuster: decrements part stock for order lines.

    Rules:
    - one decrement per line, scoped to parts owned by the ordering user
    - best effort: a missing part is skipped, a failing decrement is rolled
      back to its own savepoint and reported, the other lines still apply
    - no floor at zero; oversell leaves negative stock (logged and audited)
    - stock is never restored on cancellation
    """

    def __init__(self, db: Session, audit_log_service: AuditLogService):
        self.db = db
        self.audit_log_service = audit_log_service

    def decrement_for_order(
        self,
        *,
        user_id: str,
        lines: Iterable[Tuple[str, int]],
    ) -> InventoryAdjustmentReport:
        '''
        Decrement stock for each (part_id, quantity) pair.
        Must run inside the caller's transaction; nothing is committed here.

        :param user_id: owner of the order and of the parts
        :param lines: (part_id, quantity) pairs in order-line order
        :return: which parts were adjusted, skipped or failed
        :rtype: InventoryAdjustmentReport
        '''
        report = InventoryAdjustmentReport()

        for part_id, quantity in lines:
            try:
                with self.db.begin_nested():
                    new_quantity = self._decrement(user_id=user_id, part_id=part_id, quantity=quantity)
            except Exception:
                logger.exception("Inventory decrement failed for part %s (qty %s)", part_id, quantity)
                report.failed.append(part_id)
                continue

            if new_quantity is None:
                logger.warning("Inventory decrement skipped: part %s not found for user %s", part_id, user_id)
                report.skipped.append(part_id)
                continue

            report.adjusted.append(part_id)
            logger.info("Part %s stock -%s -> %s", part_id, quantity, new_quantity)

            if new_quantity < 0:
                report.negative_stock.append(part_id)
                logger.warning("Part %s oversold, stock is now %s", part_id, new_quantity)
                self.audit_log_service.record_system_update(
                    entity_type=AuditEntityType.Part,
                    entity_id=part_id,
                    changed_attribute="quantity",
                    before_value=new_quantity + quantity,
                    after_value=new_quantity,
                )

        return report

    def _decrement(self, *, user_id: str, part_id: str, quantity: int) -> Optional[int]:
        '''
        Single-statement `quantity = quantity - n`, so concurrent orders on the
        same row do not lose updates. Returns the new quantity, or None when
        the part does not exist under this user.
        '''
        owned = (
            self.db.query(Part.id)
            .filter(Part.id == part_id, Part.user_id == user_id)
            .first()
        )
        if owned is None:
            return None

        stmt = (
            update(Part)
            .where(Part.id == part_id, Part.user_id == user_id)
            .values(quantity=Part.quantity - quantity)
            .execution_options(synchronize_session="fetch")
        )
        self.db.execute(stmt)

        return (
            self.db.query(Part.quantity)
            .filter(Part.id == part_id)
            .scalar()
        )
