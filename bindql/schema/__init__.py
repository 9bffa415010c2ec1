"""bindQL configuration models."""
from bindql.schema.config import ConnectionConfig, DriverTarget

__all__ = ["ConnectionConfig", "DriverTarget"]
