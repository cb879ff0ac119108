from __future__ import annotations
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool


DEFAULT_DATABASE_URL = "sqlite:///./linguaai.db"

Base = declarative_base()


def build_engine(url: str) -> Engine:
	if not url.startswith("sqlite"):
		return create_engine(url, pool_pre_ping=True, future=True)
	kwargs = {"connect_args": {"check_same_thread": False}}
	if url in ("sqlite://", "sqlite:///:memory:"):
		# One shared connection, otherwise each session sees its own empty database
		kwargs["poolclass"] = StaticPool
	return create_engine(url, future=True, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
	return sessionmaker(autoflush=False, bind=engine, future=True)


def get_db(request: Request):
	db: Session = request.app.state.session_factory()
	try:
		yield db
	finally:
		db.close()
