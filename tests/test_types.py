import datetime
import decimal
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, TypedDict

from pydantic import BaseModel, Field

from api_doc_catalog.schema.types import LeafKind, describe, friendly_type_name


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Address(BaseModel):
    street: str = Field(..., description="Street and number")
    zip_code: str | None = Field(None, alias="zip")


@dataclass
class Point:
    x: int
    y: int = 0
    label: str = field(default="", metadata={"alias": "name", "description": "Display label"})


class Settings(TypedDict):
    theme: str
    size: int


class Profile:
    nickname: str
    _secret: str

    @property
    def display(self) -> str:
        """Rendered name."""
        return self.nickname


class TestFriendlyTypeName:
    def test_none_is_unknown(self):
        assert friendly_type_name(None) == "Unknown"

    def test_plain_class(self):
        assert friendly_type_name(describe(int)) == "int"
        assert friendly_type_name(describe(Address)) == "Address"

    def test_generic_arguments(self):
        assert friendly_type_name(describe(list[Address])) == "list<Address>"
        assert friendly_type_name(describe(dict[str, list[int]])) == "dict<str, list<int>>"

    def test_optional(self):
        assert friendly_type_name(describe(Optional[int])) == "Optional<int>"
        assert friendly_type_name(describe(int | None)) == "Optional<int>"

    def test_union_and_any(self):
        assert friendly_type_name(describe(int | str)) == "Union<int, str>"
        assert friendly_type_name(describe(Any)) == "Any"

    def test_variadic_tuple_drops_ellipsis(self):
        assert friendly_type_name(describe(tuple[int, ...])) == "tuple<int>"


class TestLeafKinds:
    def test_scalars(self):
        assert describe(bool).leaf_kind == LeafKind.BOOLEAN
        assert describe(int).leaf_kind == LeafKind.INTEGER
        assert describe(float).leaf_kind == LeafKind.NUMBER
        assert describe(decimal.Decimal).leaf_kind == LeafKind.NUMBER
        assert describe(str).leaf_kind == LeafKind.STRING

    def test_dates_and_guid(self):
        assert describe(datetime.datetime).leaf_kind == LeafKind.DATETIME
        assert describe(datetime.date).leaf_kind == LeafKind.DATE
        assert describe(uuid.UUID).leaf_kind == LeafKind.GUID

    def test_enum_and_literal(self):
        assert describe(Color).leaf_kind == LeafKind.ENUM
        assert describe(Color).enum_members == ["red", "green"]
        assert describe(Literal["a", "b"]).leaf_kind == LeafKind.ENUM
        assert describe(Literal["a", "b"]).enum_members == ["a", "b"]

    def test_composites_are_not_leaves(self):
        assert describe(Address).leaf_kind is None
        assert describe(list[int]).leaf_kind is None


class TestCollectionsAndNullable:
    def test_element_type(self):
        assert describe(list[Address]).element_type == describe(Address)
        assert describe(set[int]).element_type == describe(int)
        assert describe(list).element_type == describe(Any)

    def test_strings_and_mappings_are_not_collections(self):
        assert describe(str).element_type is None
        assert describe(dict[str, int]).element_type is None

    def test_nullable_underlying(self):
        assert describe(Optional[Address]).nullable_underlying == describe(Address)
        assert describe(Address).nullable_underlying is None
        assert describe(int | str | None).nullable_underlying is None

    def test_is_composite_unwraps_nullable(self):
        assert describe(Optional[Address]).is_composite is True
        assert describe(Optional[int]).is_composite is False
        assert describe(list[Address]).is_composite is False


class TestProperties:
    def test_pydantic_model(self):
        props = {p.name: p for p in describe(Address).properties}
        assert props["street"].required is True
        assert props["street"].description == "Street and number"
        assert props["zip_code"].required is False
        assert props["zip_code"].wire_name == "zip"

    def test_dataclass(self):
        props = {p.name: p for p in describe(Point).properties}
        assert props["x"].required is True
        assert props["y"].required is False
        assert props["label"].wire_name == "name"
        assert props["label"].description == "Display label"

    def test_typed_dict(self):
        props = {p.name: p for p in describe(Settings).properties}
        assert set(props) == {"theme", "size"}
        assert props["theme"].required is True

    def test_plain_class_skips_private_and_reads_properties(self):
        props = {p.name: p for p in describe(Profile).properties}
        assert set(props) == {"nickname", "display"}
        assert props["display"].description == "Rendered name."

    def test_leaves_and_builtins_have_no_properties(self):
        assert describe(str).properties == []
        assert describe(dict).properties == []
        assert describe(list[int]).properties == []

    def test_descriptors_compare_by_type(self):
        assert describe(Address) == describe(Address)
        assert len({describe(Address), describe(Address), describe(Point)}) == 2
