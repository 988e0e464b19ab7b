from __future__ import annotations

import functools
from typing import Any, Callable, Iterator, TypeVar

import anyio
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from prepcoach.config import settings


class Base(DeclarativeBase):
	pass


def make_engine(url: str, *, echo: bool = False, **kwargs) -> Engine:
	connect_args = kwargs.pop("connect_args", {})
	if url.startswith("sqlite"):
		# FastAPI may hand a request to a different worker thread than the one that opened it
		connect_args.setdefault("check_same_thread", False)
	engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
	if engine.dialect.name == "sqlite":
		event.listen(engine, "connect", _enable_sqlite_foreign_keys)
	return engine


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
	cursor = dbapi_connection.cursor()
	cursor.execute("PRAGMA foreign_keys=ON")
	cursor.close()


engine = make_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
	"""Create all tables. Imports the models so they register on `Base`."""
	from prepcoach import models  # noqa: F401

	Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterator[Session]:
	"""FastAPI dependency: one session per request."""
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


T = TypeVar("T")


async def run_in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
	"""Run blocking session work in the worker pool."""
	return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))
