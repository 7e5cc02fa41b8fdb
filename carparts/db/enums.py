# carparts/db/enums.py
import enum


# User related enums
class UserRole(enum.Enum):
    admin = "admin"
    user = "user"


class UserStatus(enum.Enum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


# Order related enums
class OrderStatus(enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(enum.Enum):
    CASH = "CASH"
    CARD = "CARD"


# AuditLog related enums
class AuditEntityType(enum.Enum):
    User = "user"
    Category = "category"
    Part = "part"
    Order = "order"


class AuditAction(enum.Enum):
    create = "create"
    update = "update"
    system = "system"
