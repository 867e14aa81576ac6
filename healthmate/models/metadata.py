"""Shared metadata so foreign keys resolve across table modules."""

from sqlalchemy import MetaData

metadata = MetaData()
