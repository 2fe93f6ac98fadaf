from db.models import Base, PaymentRecord
from db.session import get_engine, init_db, manual_session, reset_engines
from db.store import SqlPaymentStore

__all__ = [
    "Base",
    "PaymentRecord",
    "SqlPaymentStore",
    "get_engine",
    "init_db",
    "manual_session",
    "reset_engines",
]
