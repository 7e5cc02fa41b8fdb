# carparts/models/mixins/owned_record.py
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class OwnedRecordMixin:
    """
    Base mixin for every record scoped to a single user
    (category / part / order).

    Invariants:
    - Immutable identity
    - Belongs to exactly one user; every read/write filters on user_id
    """
    # =========
    # Identity & ownership
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="Record UUID")

    user_id :Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="Owning user ID",
    )

    # =========
    # ⏱ Timestamps (local server time)
    # =========
    created_at :Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now,
        nullable=False,
        comment="Creation timestamp"
    )

    updated_at :Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
        comment="Last update timestamp"
    )
