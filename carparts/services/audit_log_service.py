from typing import Any
from uuid import uuid4
from decimal import Decimal
from datetime import datetime, date
from enum import Enum

from sqlalchemy.orm import Session

from carparts.models.audit_log import AuditLog
from carparts.db.enums import AuditEntityType, AuditAction


class AuditLogService:
    """
    Centralized service for recording all auditable actions.
    This service is the ONLY place where AuditLog records can be created.
    """

    def __init__(self, db: Session):
        self.db = db

    def serialize_audit_value(self, value) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (int, float, str, bool)):
            return value
        return str(value)

    def record_create(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: str,
        operator_id: str,
    ) -> None:
        '''
        Record creation of an entity (order, part, category, user).

        :param entity_type: audited entity type
        :param entity_id: UUID of the created entity
        :param operator_id: user ID of the operator
        '''
        log = AuditLog(
            id=str(uuid4()),
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.create,
            changed_attribute="__all__",
            before_value=None,
            after_value=None,
            operator_id=operator_id,
            timestamp=datetime.now(),
        )
        self.db.add(log)

    def record_update(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
        operator_id: str,
    ) -> None:
        '''
        Record a user-initiated change of one attribute.

        :param entity_type: audited entity type
        :param entity_id: UUID of the changed entity
        :param changed_attribute: attribute name
        :param before_value: value before the change
        :param after_value: value after the change
        :param operator_id: user ID of the operator
        '''
        log = AuditLog(
            id=str(uuid4()),
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.update,
            changed_attribute=changed_attribute,
            before_value=self.serialize_audit_value(before_value),
            after_value=self.serialize_audit_value(after_value),
            operator_id=operator_id,
            timestamp=datetime.now(),
        )
        self.db.add(log)

    def record_system_update(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: str,
        changed_attribute: str,
        before_value: Any,
        after_value: Any,
    ) -> None:
        '''
        Record a change made by the system as a side effect,
        e.g. inventory decrement driving a part's stock below zero.
        '''
        log = AuditLog(
            id=str(uuid4()),
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction.system,
            changed_attribute=changed_attribute,
            before_value=self.serialize_audit_value(before_value),
            after_value=self.serialize_audit_value(after_value),
            operator_id="SYSTEM",
            timestamp=datetime.now(),
        )
        self.db.add(log)

    def list_for_entity(self, entity_id: str) -> list[AuditLog]:
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.entity_id == entity_id)
            .order_by(AuditLog.timestamp.asc())
            .all()
        )
