from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
import os

from invoicing.config import TENANT_DATABASE_URLS

# Allow overriding database via environment.
# Default remains the lightweight local sqlite DB used in development.
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./invoicing.db")

engine = create_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_partition_factories: dict[str, sessionmaker] = {}


class Base(DeclarativeBase):
	pass


class UnknownDatabase(KeyError):
	"""Raised when a job or request names a data partition that is not configured."""


def get_session_factory(db_name: str | None = None) -> sessionmaker:
	"""Return the session factory for a data partition.

	``None`` and ``"default"`` resolve to the primary database. Other names are
	looked up in TENANT_DATABASE_URLS and their engines are created lazily.
	"""
	if db_name in (None, "", "default"):
		return SessionLocal
	if db_name not in _partition_factories:
		url = TENANT_DATABASE_URLS.get(db_name)
		if url is None:
			raise UnknownDatabase(db_name)
		_partition_factories[db_name] = sessionmaker(autocommit=False, autoflush=False, bind=create_engine(url))
	return _partition_factories[db_name]
