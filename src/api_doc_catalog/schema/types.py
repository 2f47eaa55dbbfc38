"""Type descriptors: the small, closed set of questions the pipeline asks about a type.

The schema generator and the parameter builder never touch Python's typing
machinery directly. They go through a TypeDescriptor, so any other source of
type information (a pre-extracted type table, a foreign schema) can be
plugged in by subclassing it.
"""

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import inspect
import logging
import typing
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import NoneType, UnionType
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

UNKNOWN_TYPE_NAME = "Unknown"


class LeafKind(str, enum.Enum):
    """Primitive-like types that end the recursion."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    ENUM = "enum"
    GUID = "guid"


@dataclass(frozen=True)
class PropertyInfo:
    """One readable property of a composite type."""

    name: str
    type: "TypeDescriptor"
    required: bool = False
    description: str | None = None
    wire_name: str | None = None  # explicit rename, e.g. a pydantic alias


class TypeDescriptor(ABC):
    """Capability interface over a host type."""

    @property
    @abstractmethod
    def key(self) -> collections.abc.Hashable:
        """Identity of the underlying type; equal keys mean the same type."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name without type arguments."""

    @property
    @abstractmethod
    def type_arguments(self) -> list["TypeDescriptor"]:
        ...

    @property
    @abstractmethod
    def leaf_kind(self) -> LeafKind | None:
        """The primitive probe: None for composite and collection types."""

    @property
    @abstractmethod
    def element_type(self) -> "TypeDescriptor | None":
        """The collection probe: element type, or None if not a collection."""

    @property
    @abstractmethod
    def nullable_underlying(self) -> "TypeDescriptor | None":
        """The nullable probe: underlying type, or None if not nullable."""

    @property
    @abstractmethod
    def properties(self) -> list[PropertyInfo]:
        ...

    @property
    def enum_members(self) -> list:
        return []

    @property
    def is_primitive(self) -> bool:
        return self.leaf_kind is not None

    @property
    def is_collection(self) -> bool:
        return self.element_type is not None

    @property
    def is_composite(self) -> bool:
        """Neither a leaf nor a collection, after unwrapping nullability."""
        inner = self.nullable_underlying or self
        return not inner.is_primitive and not inner.is_collection

    def __eq__(self, other):
        if not isinstance(other, TypeDescriptor):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return f"{type(self).__name__}({friendly_type_name(self)})"


_SEQUENCE_ORIGINS = {
    list,
    set,
    frozenset,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
}


def _strip_annotated(annotation):
    while typing.get_origin(annotation) is Annotated:
        annotation = typing.get_args(annotation)[0]
    return annotation


def _is_union(annotation) -> bool:
    return typing.get_origin(annotation) in (Union, UnionType)


def _is_plain_class(annotation) -> bool:
    return isinstance(annotation, type) and typing.get_origin(annotation) is None


class PythonTypeDescriptor(TypeDescriptor):
    """TypeDescriptor backed by a Python annotation (classes, typing generics, pydantic models)."""

    def __init__(self, annotation):
        if annotation is inspect.Parameter.empty:
            annotation = Any
        self.annotation = _strip_annotated(annotation)

    @property
    def key(self):
        try:
            hash(self.annotation)
        except TypeError:
            return repr(self.annotation)
        return self.annotation

    @property
    def name(self) -> str:
        annotation = self.annotation
        if annotation is Any:
            return "Any"
        if annotation is None or annotation is NoneType:
            return "None"
        if _is_union(annotation):
            return "Optional" if self.nullable_underlying is not None else "Union"
        if typing.get_origin(annotation) is Literal:
            return "Literal"
        origin = typing.get_origin(annotation)
        if origin is not None:
            return getattr(origin, "__name__", str(origin))
        return getattr(annotation, "__name__", str(annotation))

    @property
    def type_arguments(self) -> list[TypeDescriptor]:
        underlying = self.nullable_underlying
        if underlying is not None:
            return [underlying]
        if typing.get_origin(self.annotation) is Literal:
            return []
        return [
            describe(arg)
            for arg in typing.get_args(self.annotation)
            if arg is not Ellipsis
        ]

    @property
    def leaf_kind(self) -> LeafKind | None:
        annotation = self.annotation
        if typing.get_origin(annotation) is Literal:
            return LeafKind.ENUM
        if not _is_plain_class(annotation):
            return None
        # enum before int/str: IntEnum and StrEnum subclass both
        if issubclass(annotation, enum.Enum):
            return LeafKind.ENUM
        if issubclass(annotation, bool):
            return LeafKind.BOOLEAN
        if issubclass(annotation, int):
            return LeafKind.INTEGER
        if issubclass(annotation, (float, decimal.Decimal)):
            return LeafKind.NUMBER
        if issubclass(annotation, (str, bytes)):
            return LeafKind.STRING
        # datetime before date: datetime subclasses date
        if issubclass(annotation, datetime.datetime):
            return LeafKind.DATETIME
        if issubclass(annotation, datetime.date):
            return LeafKind.DATE
        if issubclass(annotation, datetime.time):
            return LeafKind.TIME
        if issubclass(annotation, uuid.UUID):
            return LeafKind.GUID
        return None

    @property
    def element_type(self) -> TypeDescriptor | None:
        annotation = self.annotation
        origin = typing.get_origin(annotation)
        if origin in _SEQUENCE_ORIGINS:
            args = typing.get_args(annotation)
            return describe(args[0] if args else Any)
        if _is_plain_class(annotation) and annotation in _SEQUENCE_ORIGINS:
            return describe(Any)
        return None

    @property
    def nullable_underlying(self) -> TypeDescriptor | None:
        if not _is_union(self.annotation):
            return None
        args = typing.get_args(self.annotation)
        others = [arg for arg in args if arg is not NoneType]
        if len(others) == 1 and len(args) == 2:
            return describe(others[0])
        return None

    @property
    def enum_members(self) -> list:
        annotation = self.annotation
        if typing.get_origin(annotation) is Literal:
            return list(typing.get_args(annotation))
        if _is_plain_class(annotation) and issubclass(annotation, enum.Enum):
            return [member.value for member in annotation]
        return []

    @property
    def properties(self) -> list[PropertyInfo]:
        annotation = self.annotation
        if not _is_plain_class(annotation) or self.leaf_kind is not None:
            return []
        if issubclass(annotation, BaseModel):
            return _pydantic_properties(annotation)
        if dataclasses.is_dataclass(annotation):
            return _dataclass_properties(annotation)
        if issubclass(annotation, collections.abc.Mapping) and not typing.is_typeddict(annotation):
            return []
        if annotation.__module__ == "builtins":
            return []
        return _annotated_properties(annotation)


def describe(annotation) -> TypeDescriptor:
    """Wrap a Python annotation, passing descriptors through untouched."""
    if isinstance(annotation, TypeDescriptor):
        return annotation
    return PythonTypeDescriptor(annotation)


def friendly_type_name(descriptor: TypeDescriptor | None) -> str:
    """Short, human-readable label such as ``list<Item>`` or ``Optional<int>``."""
    if descriptor is None:
        return UNKNOWN_TYPE_NAME
    arguments = descriptor.type_arguments
    if arguments:
        rendered = ", ".join(friendly_type_name(arg) for arg in arguments)
        return f"{descriptor.name}<{rendered}>"
    return descriptor.name


def _type_hints(cls) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        logger.warning("Cannot resolve type hints of %s: %s", cls.__qualname__, e)
        return {}


def _pydantic_properties(model: type[BaseModel]) -> list[PropertyInfo]:
    return [
        PropertyInfo(
            name=name,
            type=describe(field.annotation),
            required=field.is_required(),
            description=field.description,
            wire_name=field.alias,
        )
        for name, field in model.model_fields.items()
    ]


def _dataclass_properties(cls) -> list[PropertyInfo]:
    hints = _type_hints(cls)
    result = []
    for field in dataclasses.fields(cls):
        if field.name not in hints:
            continue
        required = (
            field.default is dataclasses.MISSING
            and field.default_factory is dataclasses.MISSING
        )
        result.append(
            PropertyInfo(
                name=field.name,
                type=describe(hints[field.name]),
                required=required,
                description=field.metadata.get("description"),
                wire_name=field.metadata.get("alias"),
            )
        )
    return result


def _annotated_properties(cls) -> list[PropertyInfo]:
    hints = _type_hints(cls)
    required_keys = getattr(cls, "__required_keys__", frozenset())
    result = []
    for name, hint in hints.items():
        if name.startswith("_") or typing.get_origin(hint) is typing.ClassVar:
            continue
        result.append(PropertyInfo(name=name, type=describe(hint), required=name in required_keys))

    for name, member in inspect.getmembers(cls, lambda m: isinstance(m, property)):
        if name.startswith("_") or name in hints or member.fget is None:
            continue
        returns = _type_hints(member.fget).get("return")
        if returns is None:
            continue
        result.append(
            PropertyInfo(name=name, type=describe(returns), description=inspect.getdoc(member))
        )
    return result
