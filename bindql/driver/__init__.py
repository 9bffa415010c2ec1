"""bindQL driver boundary: escaping primitives and statement execution."""
from bindql.driver.base import Driver, DriverResponse
from bindql.driver.registry import DriverFactory
from bindql.driver.sqlalchemy import SQLAlchemyDriver
from bindql.driver.sqlite import SQLiteDriver

__all__ = [
    "Driver",
    "DriverResponse",
    "DriverFactory",
    "SQLAlchemyDriver",
    "SQLiteDriver",
]
