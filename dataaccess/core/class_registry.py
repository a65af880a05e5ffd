"""
Class Registry
==============

Resolves a type name to a record definition, caches singleton instances and
hydrates result rows into typed objects.

A definition pairs a zero-argument factory with a field-binding table
(column name -> attribute name). Definitions come from two places:

1. explicit ``register(...)`` calls, checked first;
2. the ordered search packages, by default ``dataaccess.entities`` (data
   records) then ``dataaccess.core`` (infrastructure). ``FooBar`` is looked
   up in the ``foo_bar`` module (or ``foobar``) of each package.

Usage
-----
.. code-block:: python

    registry = ClassRegistry()
    registry.ensure_loadable("User")          # True, imports dataaccess.entities.user
    user = registry.hydrate("User", {"id": 1, "email": "a@x.com"})
    db = registry.resolve("Database")         # cached singleton
"""

import importlib
import importlib.util
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

from sqlalchemy import inspect as sa_inspect

from dataaccess.exceptions import ResolutionError
from dataaccess.helpers.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SEARCH_PACKAGES = ("dataaccess.entities", "dataaccess.core")
"""Data-record definitions first, then infrastructure definitions."""

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def module_candidates(type_name: str) -> list:
    """Module names a type may live in: snake_case first, then lowercase."""
    snake = _CAMEL_BOUNDARY.sub("_", type_name).lower()
    lower = type_name.lower()
    return [snake] if snake == lower else [snake, lower]


def binding_table(cls: type) -> Dict[str, str]:
    """
    Column name -> attribute name for a SQLAlchemy mapped class.

    Unmapped classes get an empty table, meaning every column binds to the
    attribute of the same name.
    """
    mapper = sa_inspect(cls, raiseerr=False)
    if mapper is None or not hasattr(mapper, "column_attrs"):
        return {}
    return {prop.columns[0].name: prop.key for prop in mapper.column_attrs}


@dataclass(frozen=True)
class RecordDefinition:
    """A resolvable type: how to construct it and how columns bind to it."""

    name: str
    factory: Callable[[], Any]
    fields: Mapping[str, str] = field(default_factory=dict)

    def create(self) -> Any:
        return self.factory()

    def hydrate(self, row: Mapping[str, Any]) -> Any:
        """Build one instance and copy every column onto its bound attribute."""
        obj = self.factory()
        for column, value in row.items():
            setattr(obj, self.fields.get(column, column), value)
        return obj


class ClassRegistry:
    """
    Registry of record definitions and singleton instances.

    Parameters
    ----------
    search_packages : sequence of str, optional
        Packages searched, in order, for a module defining a requested type.
    """

    def __init__(self, search_packages: Optional[Sequence[str]] = None):
        self.search_packages = tuple(
            DEFAULT_SEARCH_PACKAGES if search_packages is None else search_packages
        )
        self._definitions: Dict[str, RecordDefinition] = {}
        self._instances: Dict[str, Any] = {}

    # -- definitions -----------------------------------------------------------

    def register(
        self,
        cls: type,
        name: Optional[str] = None,
        fields: Optional[Mapping[str, str]] = None,
    ) -> RecordDefinition:
        """
        Register `cls` under `name` (defaults to the class name).

        Registering the same class twice keeps the first definition.

        Raises
        ------
        ResolutionError
            If `name` is already bound to a different class.
        """
        name = name or cls.__name__
        existing = self._definitions.get(name)
        if existing is not None:
            if existing.factory is not cls:
                raise ResolutionError(
                    name, self.search_packages,
                    message=f"'{name}' is already registered to {existing.factory!r}, not {cls!r}",
                )
            return existing
        definition = RecordDefinition(
            name=name,
            factory=cls,
            fields=dict(binding_table(cls) if fields is None else fields),
        )
        self._definitions[name] = definition
        logger.debug("Registered record definition %s", name)
        return definition

    def is_registered(self, type_name: str) -> bool:
        return type_name in self._definitions

    def ensure_loadable(self, type_name: str, load: bool = True) -> bool:
        """
        Make sure a definition for `type_name` can be found.

        Parameters
        ----------
        type_name : str
            Class name to look for.
        load : bool
            When True, register the class found so it can be instantiated.
            When False, only report whether a search location defines it.

        Returns
        -------
        bool
            True on the first matching location, False when none matches.
        """
        if type_name in self._definitions:
            return True
        if not type_name.isidentifier():
            return False

        for package in self.search_packages:
            for module_name in module_candidates(type_name):
                qualified = f"{package}.{module_name}"
                try:
                    spec = importlib.util.find_spec(qualified)
                except ModuleNotFoundError:
                    spec = None
                if spec is None:
                    continue
                module = importlib.import_module(qualified)
                cls = getattr(module, type_name, None)
                if not isinstance(cls, type):
                    continue
                if load:
                    self.register(cls, type_name)
                return True
        return False

    def definition(self, type_name: Union[str, type]) -> RecordDefinition:
        """
        Return the definition for `type_name`, loading it if needed.

        A class may be passed instead of a name; it is registered on first use.
        A class whose name is bound to a different class is refused.

        Raises
        ------
        ResolutionError
            If no search location defines the type, or a passed class
            clashes with the definition already bound to its name.
        """
        if isinstance(type_name, type):
            return self.register(type_name)
        if not self.ensure_loadable(type_name):
            raise ResolutionError(type_name, self.search_packages)
        return self._definitions[type_name]

    def hydrate(self, type_name: Union[str, type], row: Mapping[str, Any]) -> Any:
        return self.definition(type_name).hydrate(row)

    def hydrate_all(self, type_name: Union[str, type], rows: Iterable[Mapping[str, Any]]) -> list:
        definition = self.definition(type_name)
        return [definition.hydrate(row) for row in rows]

    # -- instances -------------------------------------------------------------

    def resolve(self, type_name: Union[str, type], singleton: bool = True) -> Any:
        """
        Return an instance of `type_name`.

        With ``singleton=True`` the cached instance is returned, created with
        the zero-argument constructor on first request. With
        ``singleton=False`` a fresh instance is built and the cache is left
        untouched.
        """
        if isinstance(type_name, type):
            self.definition(type_name)
        name = type_name if isinstance(type_name, str) else type_name.__name__
        if singleton and name in self._instances:
            return self._instances[name]
        instance = self.definition(type_name).create()
        if singleton:
            self._instances[name] = instance
        return instance

    def override(self, type_name: str, instance: Any) -> None:
        """Replace (or set) the cached singleton for `type_name`."""
        self._instances[type_name] = instance


# -- module singleton ----------------------------------------------------------

_default_registry: Optional[ClassRegistry] = None


def get_registry() -> ClassRegistry:
    """Return (and lazily create) the process-wide registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ClassRegistry()
    return _default_registry


def reset_registry() -> None:
    """Discard the process-wide registry (useful in tests)."""
    global _default_registry
    _default_registry = None
