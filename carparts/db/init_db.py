from carparts.db.session import get_engine
from carparts.db.base import Base
# register every table on Base.metadata
from carparts.models.user import User  # noqa: F401
from carparts.models.category import Category  # noqa: F401
from carparts.models.part import Part  # noqa: F401
from carparts.models.order import Order, OrderItem  # noqa: F401
from carparts.models.audit_log import AuditLog  # noqa: F401


def init_db():
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
