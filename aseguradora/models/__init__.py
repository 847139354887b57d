# Aseguradora Models
from aseguradora.models.database import Base, init_db, create_async_db_engine, create_async_session_factory
from aseguradora.models.policy import Policy, InsuranceType

__all__ = [
    "Base",
    "init_db",
    "create_async_db_engine",
    "create_async_session_factory",
    "Policy",
    "InsuranceType",
]
