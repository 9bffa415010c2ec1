"""Lookup table from ``ConnectionConfig.driver`` values to driver classes.

:meth:`~bindql.connection.Connection.from_config` only ever sees a target
name such as ``"sqlite"``.  The table below resolves that name to a
:class:`~bindql.driver.base.Driver` subclass and calls it with the database
location and driver options taken from the config.

The built-in ``sqlite`` and ``sqlalchemy`` targets are added when
:mod:`bindql` is imported.  A third-party backend adds itself the same
way, either with the :meth:`DriverFactory.register` decorator on its class
or with :meth:`DriverFactory.register_class` at import time.  Registering a
name twice replaces the earlier class.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from bindql.driver.base import Driver
from bindql.errors import DriverConfigError


class DriverFactory:
    """Process-wide table of driver targets, shared by every connection."""

    _drivers: ClassVar[dict[str, type[Driver]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Driver]], type[Driver]]:
        """Class decorator form of :meth:`register_class`.

        The decorated class is returned untouched.
        """

        def decorator(driver_cls: type[Driver]) -> type[Driver]:
            cls.register_class(name, driver_cls)
            return driver_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, driver_cls: type[Driver]) -> None:
        cls._drivers[name] = driver_cls

    @classmethod
    def create(cls, name: str, *args: Any, **kwargs: Any) -> Driver:
        """Build a driver for the target ``name``.

        ``args`` and ``kwargs`` go straight to the driver class; for
        ``Connection.from_config`` that is the database location plus
        ``like_escape_character``.

        Raises:
            DriverConfigError: When ``name`` was never registered.  The
                message lists the targets that are.
        """
        driver_cls = cls._drivers.get(name)
        if driver_cls is None:
            registered = sorted(cls._drivers)
            raise DriverConfigError(
                f"Unsupported driver target: '{name}'. Registered targets: {registered}."
            )
        return driver_cls(*args, **kwargs)

    @classmethod
    def registered_targets(cls) -> list[str]:
        return sorted(cls._drivers)
