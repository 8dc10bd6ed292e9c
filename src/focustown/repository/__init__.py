"""Persistence adapters for the local town store."""

from focustown.repository.sql_store import SqlTownRepository

__all__ = ["SqlTownRepository"]
