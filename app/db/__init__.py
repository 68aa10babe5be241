"""Database package: engine, session, base."""

from app.db.session import async_session_maker, create_tables, engine

__all__ = ["async_session_maker", "create_tables", "engine"]
