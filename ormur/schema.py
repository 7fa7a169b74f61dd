"""
Ormur Schema — column rules and schema composition.

A model's schema is an ordered mapping of column name to ``Column``. Columns
double as the attribute descriptors installed on the model class, so reading
``user.name`` returns the current property value and assigning to it updates
the instance's properties.

Usage:
    from ormur import Column, Model

    class User(Model):
        id = Column("integer", primary_key=True)
        name = Column("string", not_null=True)
        password = Column("string", hidden=True, transform=hash_password)
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from .faults import ConfigurationFault

__all__ = ["Column", "ColumnType", "UNSET", "compose_schema"]


# ── Sentinel ─────────────────────────────────────────────────────────────────

class _Unset:
    """Sentinel for distinguishing 'not set' from None."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<UNSET>"

    def __bool__(self):
        return False

UNSET = _Unset()


class ColumnType(str, Enum):
    """Scalar types a column may declare."""
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    UUID = "uuid"


_OPTION_NAMES = (
    "type",
    "primary_key",
    "not_null",
    "hidden",
    "default",
    "transform",
    "validate",
    "auto",
)


class Column:
    """
    One schema entry: a column's type and constraints.

    Parameters:
        type        – ``integer``, ``string``, ``boolean``, ``date`` or ``uuid``
        primary_key – Identifies the row (exactly one per model)
        not_null    – Value is required at write time
        hidden      – Never included in serialized output
        default     – Literal value or zero-argument callable
        transform   – ``value -> value`` or ``value -> awaitable``, run before writes
        validate    – ``value -> bool`` custom predicate
        auto        – Store-generated; type checks are skipped
                      (defaults to ``primary_key``)

    Only explicitly passed options are remembered, so an override declaration
    can change a single option of an inherited column.
    """

    def __init__(
        self,
        type: Optional[str] = None,
        *,
        primary_key: Any = UNSET,
        not_null: Any = UNSET,
        hidden: Any = UNSET,
        default: Any = UNSET,
        transform: Any = UNSET,
        validate: Any = UNSET,
        auto: Any = UNSET,
    ):
        given = {
            "type": type if type is not None else UNSET,
            "primary_key": primary_key,
            "not_null": not_null,
            "hidden": hidden,
            "default": default,
            "transform": transform,
            "validate": validate,
            "auto": auto,
        }
        self._options: Dict[str, Any] = {
            key: value for key, value in given.items() if value is not UNSET
        }
        if "type" in self._options:
            self._options["type"] = self._coerce_type(self._options["type"])

        # Set by __set_name__ / the metaclass
        self.name: str = ""

    @staticmethod
    def _coerce_type(value: Any) -> ColumnType:
        try:
            return ColumnType(value)
        except ValueError:
            allowed = ", ".join(t.value for t in ColumnType)
            raise ConfigurationFault(
                f"Unknown column type {value!r}; expected one of: {allowed}"
            ) from None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        type_name = self.type.value if self.type else "?"
        return f"<Column {self.name or '?'}: {type_name}>"

    # ── Options ──────────────────────────────────────────────────────

    @property
    def options(self) -> Dict[str, Any]:
        """Explicitly declared options."""
        return dict(self._options)

    @property
    def type(self) -> Optional[ColumnType]:
        return self._options.get("type")

    @property
    def primary_key(self) -> bool:
        return bool(self._options.get("primary_key", False))

    @property
    def not_null(self) -> bool:
        return bool(self._options.get("not_null", False))

    @property
    def hidden(self) -> bool:
        return bool(self._options.get("hidden", False))

    @property
    def auto(self) -> bool:
        return bool(self._options.get("auto", self.primary_key))

    @property
    def transform(self) -> Optional[Callable[[Any], Any]]:
        return self._options.get("transform")

    @property
    def validator(self) -> Optional[Callable[[Any], bool]]:
        return self._options.get("validate")

    def has_default(self) -> bool:
        return "default" in self._options

    def get_default(self) -> Any:
        """Default value, calling it if callable."""
        value = self._options.get("default")
        if callable(value):
            return value()
        return copy.deepcopy(value)

    def merge(self, override: Column) -> Column:
        """Return a new column: this column's options, overridden per option."""
        merged = Column()
        merged._options = {**self._options, **override._options}
        merged.name = override.name or self.name
        return merged

    # ── Descriptor protocol ──────────────────────────────────────────

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        if self.name not in type(instance)._schema:
            # Column dropped by a subclass schema override
            try:
                return instance.__dict__[self.name]
            except KeyError:
                raise AttributeError(
                    f"'{type(instance).__name__}' object has no attribute '{self.name}'"
                ) from None
        properties = instance._properties
        if properties is None:
            return None
        return properties.get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        if self.name not in type(instance)._schema:
            instance.__dict__[self.name] = value
            return
        if instance._properties is None:
            instance._properties = {}
        instance._properties[self.name] = value


def compose_schema(
    base: Optional[Mapping[str, Column]],
    override: Optional[Mapping[str, Column]],
) -> Dict[str, Column]:
    """
    Deep-merge two schemas: ``base`` first, then ``override``.

    Columns present in both are merged option by option with the override
    winning. Column order is base order followed by override-only columns.
    Neither input is mutated.
    """
    result: Dict[str, Column] = {}
    for name, column in (base or {}).items():
        result[name] = column.merge(Column())
        result[name].name = name
    for name, column in (override or {}).items():
        if name in result:
            result[name] = result[name].merge(column)
        else:
            result[name] = column.merge(Column())
        result[name].name = name
    return result
