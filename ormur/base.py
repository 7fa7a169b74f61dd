"""
Ormur Model Base — metaclass-driven active-record models.

Usage:
    from ormur import Column, Model

    class User(Model):
        id = Column("integer", primary_key=True)
        name = Column("string", not_null=True)
        is_cool = Column("boolean", default=False)
        password = Column("string", hidden=True, transform=hash_password)

    user = await User.create(name="Ormur", password="hunter22")
    user = await User.find(1)
    hawks = await User.where(name="Hawk")
    await User.destroy(1)

Lifecycle:
    1. ``ModelMeta`` resolves the class schema once (inherited columns first,
       own columns win per option) and installs one accessor per column.
    2. ``Model.__init__`` binds raw attributes (either key convention) to
       the instance's properties.
    3. After the whole constructor chain has returned, ``ModelMeta.__call__``
       runs ``check_configuration()``; subclasses may wire ``self.store``
       after calling ``super().__init__()``.
    4. Writes run the pre-save pipeline: validate -> defaults -> transforms.
"""

from __future__ import annotations

import asyncio
import datetime
import inspect
import json
import logging
import types
import uuid
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from .db.backends.base import Store
from .db.engine import create_store, get_store
from .faults import ConfigurationFault, ValidationFault
from .naming import camel_cased, is_uuid, snake_cased, tableize, to_access_key, to_storage_key
from .schema import UNSET, Column, ColumnType, compose_schema

logger = logging.getLogger("ormur.models")

M = TypeVar("M", bound="Model")

__all__ = ["Model", "ModelMeta", "dualmethod"]


_TYPE_CHECKS: Dict[ColumnType, Callable[[Any], bool]] = {
    ColumnType.INTEGER: lambda v: isinstance(v, int) and not isinstance(v, bool),
    ColumnType.STRING: lambda v: isinstance(v, str),
    ColumnType.BOOLEAN: lambda v: isinstance(v, bool),
    ColumnType.DATE: lambda v: isinstance(v, datetime.date),
    ColumnType.UUID: lambda v: isinstance(v, uuid.UUID) or is_uuid(v),
}


class dualmethod:
    """
    Method with separate instance and class implementations.

        @dualmethod
        async def destroy(self): ...

        @destroy.classmethod
        async def destroy(cls, key): ...
    """

    def __init__(self, finstance: Callable[..., Any]):
        self._finstance = finstance
        self._fclass: Optional[Callable[..., Any]] = None
        self.__doc__ = finstance.__doc__

    def classmethod(self, fclass: Callable[..., Any]) -> dualmethod:
        self._fclass = fclass
        return self

    def __get__(self, instance: Any, owner: type) -> Callable[..., Any]:
        if instance is None:
            if self._fclass is None:
                raise AttributeError(f"{owner.__name__}.{self._finstance.__name__} needs an instance")
            return types.MethodType(self._fclass, owner)
        return types.MethodType(self._finstance, instance)


# ── Model Metaclass ──────────────────────────────────────────────────────────


class ModelMeta(type):
    """
    Metaclass for Ormur models.

    Handles:
    - Schema resolution (parents, ``inherited_schema``, own columns)
    - Full ``schema = {...}`` overrides that drop inherited columns
    - Primary key discovery
    - Table naming (``table = "..."`` or the tableized class name)
    - Accessor installation
    - The post-construction configuration check
    """

    def __new__(
        mcs,
        name: str,
        bases: Tuple[type, ...],
        namespace: Dict[str, Any],
        **kwargs,
    ) -> ModelMeta:
        # Don't process the base Model class itself
        parents = [b for b in bases if isinstance(b, ModelMeta)]
        if not parents:
            return super().__new__(mcs, name, bases, namespace)

        table_attr = namespace.pop("table", None) or namespace.pop("table_name", None)
        full_schema = namespace.pop("schema", None)
        inherited = namespace.pop("inherited_schema", None)
        own = {key: value for key, value in namespace.items() if isinstance(value, Column)}

        if full_schema is not None:
            schema = compose_schema(full_schema, own)
        else:
            schema = {}
            for parent in parents:
                schema = compose_schema(schema, parent._schema)
            schema = compose_schema(schema, inherited)
            schema = compose_schema(schema, own)

        for column_name, column in schema.items():
            if column.type is None:
                raise ConfigurationFault(
                    f"Column '{column_name}' does not declare a type",
                    model=name,
                )

        cls = super().__new__(mcs, name, bases, namespace)

        cls._schema = schema
        cls._table_name = table_attr or tableize(name)
        primary_keys = [key for key, column in schema.items() if column.primary_key]
        cls._primary_keys = primary_keys
        cls._primary_key = primary_keys[0] if len(primary_keys) == 1 else None

        # One accessor per resolved column
        for column_name, column in schema.items():
            setattr(cls, column_name, column)

        return cls

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        instance = super().__call__(*args, **kwargs)
        # Runs once every __init__ in the chain has returned
        instance.check_configuration()
        return instance


# ── Model Base Class ─────────────────────────────────────────────────────────


class Model(metaclass=ModelMeta):
    """
    Ormur Model base class — async active record.

    Attributes given at construction may use the declared column name, its
    storage (underscore) form or its access (camelCase) form. Unknown keys
    are ignored.

    API:
        user = User({"name": "Ormur"})          # or User(name="Ormur")
        user.validate()
        await user.save()
        await user.update()
        await user.destroy()

        await User.find(1)
        await User.where({"name": "Hawk"})
        await User.all()
        await User.create(name="Ormur")
        await User.destroy(1)

        user.to_dict()    # camelCase keys, hidden columns removed
        user.to_json()
    """

    # Class-level attributes set by metaclass
    _schema: ClassVar[Dict[str, Column]] = {}
    _table_name: ClassVar[str] = ""
    _primary_key: ClassVar[Optional[str]] = None
    _primary_keys: ClassVar[List[str]] = []

    # Store used by this model; falls back to ormur.db.get_store()
    store: Optional[Store] = None

    def __init__(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        /,
        *,
        context_only: bool = False,
        **kwargs: Any,
    ):
        """Create a model instance (in-memory, not persisted)."""
        if context_only:
            # Only a context for class-level operations; no data is bound
            self._properties: Optional[Dict[str, Any]] = None
            return

        raw = {**(attributes or {}), **kwargs}
        resolved: Dict[str, Any] = {}
        for column in self._schema:
            for key in (column, to_storage_key(column), to_access_key(column)):
                if key in raw:
                    resolved[column] = raw[key]
                    break

        existing = self.__dict__.get("_properties") or {}
        self._properties = {**existing, **resolved}

    @classmethod
    def context(cls: Type[M]) -> M:
        """Instance without data, used to reach table and key metadata."""
        return cls(context_only=True)

    def __repr__(self) -> str:
        pk_val = self.pk if self._primary_key else "?"
        return f"<{self.__class__.__name__} pk={pk_val}>"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False
        if self.is_transient or other.is_transient:
            return self is other
        return self.pk == other.pk

    def __hash__(self) -> int:
        if self.is_transient:
            return id(self)
        return hash((self.__class__.__name__, self.pk))

    # ── Metadata ─────────────────────────────────────────────────────

    @classmethod
    def get_schema(cls) -> Dict[str, Column]:
        """The resolved schema, in declaration order."""
        return dict(cls._schema)

    @classmethod
    def get_table_name(cls) -> str:
        return cls._table_name

    @classmethod
    def get_primary_key(cls) -> Optional[str]:
        return cls._primary_key

    @property
    def properties(self) -> Dict[str, Any]:
        """Copy of the current column values (unset columns absent)."""
        return dict(self._properties or {})

    @property
    def pk(self) -> Any:
        if self._primary_key is None or not self._properties:
            return None
        return self._properties.get(self._primary_key)

    @property
    def is_transient(self) -> bool:
        """True until the instance carries a primary key value."""
        return self.pk is None

    # ── Store wiring ─────────────────────────────────────────────────

    def _set_store_options(self, options: Mapping[str, Any]) -> None:
        self.store = create_store(**options)

    store_options = property(
        None,
        _set_store_options,
        doc="Build a store from options (``{'url': ...}``) and use it for this instance.",
    )

    def _get_store(self) -> Optional[Store]:
        if self.store is not None:
            return self.store
        return get_store()

    def _require_store(self) -> Store:
        store = self._get_store()
        if store is None:
            raise ConfigurationFault(
                "A store has not been configured.",
                model=self.__class__.__name__,
            )
        return store

    def check_configuration(self) -> None:
        """
        Ensure that the model class is usable: a store is reachable and the
        schema has exactly one primary key.

        Raises:
            ConfigurationFault: When either condition does not hold
        """
        model = self.__class__.__name__
        self._require_store()
        if not self._primary_keys:
            raise ConfigurationFault("A primary key must be defined.", model=model)
        if len(self._primary_keys) > 1:
            raise ConfigurationFault(
                f"Only one primary key may be defined, found: {', '.join(self._primary_keys)}",
                model=model,
            )

    # ── Pre-save pipeline ────────────────────────────────────────────

    def validate(self) -> bool:
        """
        Check every column rule in declaration order.

        Unset columns with a default are checked against the default they
        would receive, without writing it.

        Returns:
            True when every rule passes

        Raises:
            ValidationFault: On the first failing column
        """
        properties = self._properties or {}
        for column, rule in self._schema.items():
            if column in properties:
                value = properties[column]
            elif rule.has_default():
                value = rule.get_default()
            else:
                value = UNSET

            if rule.not_null and (value is UNSET or value is None):
                raise ValidationFault(column, f"{column} cannot be null")

            if value is UNSET or value is None:
                continue

            if not rule.auto and not _TYPE_CHECKS[rule.type](value):
                raise ValidationFault(
                    column,
                    f"{column} must be a {rule.type.value}",
                    metadata={"expected": rule.type.value},
                )

            if rule.validator is not None and not rule.validator(value):
                raise ValidationFault(column, f"column validation failed for {column}")

        return True

    def set_defaults(self) -> None:
        """Fill unset columns from their defaults. Set columns are left alone."""
        if self._properties is None:
            self._properties = {}
        for column, rule in self._schema.items():
            if column not in self._properties and rule.has_default():
                self._properties[column] = rule.get_default()

    async def apply_transforms(self) -> None:
        """
        Replace each transformed column's value with ``transform(value)``.

        Awaitable results are awaited concurrently. Nothing is written until
        every transform has finished.
        """
        if self._properties is None:
            self._properties = {}
        results: Dict[str, Any] = {}
        pending: Dict[str, Awaitable[Any]] = {}
        try:
            for column, rule in self._schema.items():
                if rule.transform is None:
                    continue
                value = rule.transform(self._properties.get(column))
                if inspect.isawaitable(value):
                    pending[column] = value
                else:
                    results[column] = value
        except Exception:
            for awaitable in pending.values():
                if inspect.iscoroutine(awaitable):
                    awaitable.close()
            raise

        if pending:
            resolved = await asyncio.gather(*pending.values(), return_exceptions=True)
            for outcome in resolved:
                if isinstance(outcome, BaseException):
                    raise outcome
            results.update(zip(pending.keys(), resolved))

        self._properties.update(results)

    async def prepare(self) -> None:
        """Pre-save pipeline: validate, set defaults, apply transforms."""
        self.validate()
        self.set_defaults()
        await self.apply_transforms()

    def _load_row(self, row: Mapping[str, Any]) -> None:
        """Merge a storage-cased row from the store into properties."""
        if self._properties is None:
            self._properties = {}
        for column in self._schema:
            for key in (column, to_storage_key(column)):
                if key in row:
                    self._properties[column] = row[key]
                    break

    # ── CRUD API ─────────────────────────────────────────────────────

    async def save(self: M) -> M:
        """
        Run the pre-save pipeline and insert this instance.

        The stored row (including a store-assigned primary key) is merged
        back into the instance.
        """
        await self.prepare()
        store = self._require_store()
        row = await store.insert(
            self._table_name,
            snake_cased(self._properties),
            to_storage_key(self._primary_key),
        )
        if isinstance(row, list):
            row = row[0] if row else {}
        self._load_row(row)
        logger.debug(f"Inserted {self._table_name} {self._primary_key}={self.pk!r}")
        return self

    async def update(self: M) -> M:
        """
        Run the pre-save pipeline and write all current properties to the
        row matching this instance's primary key.

        Raises:
            ValidationFault: When the instance has no primary key value
        """
        if self.is_transient:
            raise ValidationFault(self._primary_key, f"{self._primary_key} cannot be null")
        await self.prepare()
        store = self._require_store()
        rows = await store.update(
            self._table_name,
            to_storage_key(self._primary_key),
            self.pk,
            snake_cased(self._properties),
        )
        if isinstance(rows, Mapping):
            rows = [rows]
        if rows:
            self._load_row(rows[0])
        logger.debug(f"Updated {self._table_name} {self._primary_key}={self.pk!r}")
        return self

    @dualmethod
    async def destroy(self) -> None:
        """
        Delete the row matching this instance's primary key.

        The instance itself stays usable but is stale afterwards. Called on
        the class (``User.destroy(key)``) it deletes by key.
        """
        store = self._require_store()
        deleted = await store.delete(
            self._table_name,
            to_storage_key(self._primary_key),
            self.pk,
        )
        logger.debug(f"Deleted {self._table_name} {self._primary_key}={self.pk!r} ({deleted} rows)")
        return None

    @destroy.classmethod
    async def destroy(cls, key: Any) -> None:
        instance = cls.context()
        instance._properties = {instance._primary_key: key}
        return await instance.destroy()

    @classmethod
    async def find(cls: Type[M], key: Any) -> Optional[M]:
        """Return the instance whose primary key is ``key``, or None."""
        instance = cls.context()
        store = instance._require_store()
        rows = await store.select(
            instance._table_name,
            {to_storage_key(instance._primary_key): key},
        )
        logger.debug(f"Selected {instance._table_name} {instance._primary_key}={key!r}: {len(rows)} rows")
        if rows:
            return cls(rows[0])
        return None

    @classmethod
    async def where(
        cls: Type[M],
        filters: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> List[M]:
        """
        Return instances whose columns equal every given value.

        Usage:
            await User.where({"isCool": True})
            await User.where(name="Hawk")
        """
        instance = cls.context()
        store = instance._require_store()
        criteria = snake_cased({**(filters or {}), **kwargs})
        rows = await store.select(instance._table_name, criteria)
        logger.debug(f"Selected {instance._table_name} where {criteria!r}: {len(rows)} rows")
        return [cls(row) for row in rows]

    @classmethod
    async def all(cls: Type[M]) -> List[M]:
        """Return every row of the model's table."""
        return await cls.where({})

    @classmethod
    async def create(
        cls: Type[M],
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> M:
        """
        Create and persist a new record.

        Usage:
            user = await User.create(name="Alice", password="hunter22")
        """
        return await cls(attributes, **kwargs).save()

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """camelCase view of the properties without hidden columns."""
        hidden = {column for column, rule in self._schema.items() if rule.hidden}
        return camel_cased({
            column: value
            for column, value in (self._properties or {}).items()
            if column not in hidden
        })

    def to_json(self, **kwargs: Any) -> str:
        """JSON text of ``to_dict()``; dates become ISO strings, UUIDs text."""
        return json.dumps(self.to_dict(), default=_json_default, **kwargs)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
