"""Schema and example synthesis: walks a type graph into SchemaNode trees.

Cycles end in a ``ref`` node, and the depth limit turns further object or
array expansion into the ``"max-depth"`` sentinel, so every walk terminates.
"""

import datetime
import json
import uuid
from typing import Any

from pydantic.alias_generators import to_camel

from api_doc_catalog.models import SchemaKind, SchemaNode
from api_doc_catalog.schema.types import LeafKind, PropertyInfo, TypeDescriptor, friendly_type_name

DEFAULT_MAX_DEPTH = 4
MAX_DEPTH_SENTINEL = "max-depth"

JSON_TYPES = {
    LeafKind.INTEGER: "integer",
    LeafKind.NUMBER: "number",
    LeafKind.BOOLEAN: "boolean",
    LeafKind.STRING: "string",
    LeafKind.DATE: "string",
    LeafKind.DATETIME: "string",
    LeafKind.TIME: "string",
    LeafKind.GUID: "string",
    LeafKind.ENUM: "string",
}


def wire_name(prop: PropertyInfo) -> str:
    """Serialized property name: the explicit rename, else lower camel case."""
    return prop.wire_name or to_camel(prop.name)


def leaf_example(descriptor: TypeDescriptor, kind: LeafKind) -> Any:
    """Representative literal for a primitive-like type."""
    if kind == LeafKind.STRING:
        return "string"
    if kind == LeafKind.INTEGER:
        return 123
    if kind == LeafKind.NUMBER:
        return 123.45
    if kind == LeafKind.BOOLEAN:
        return True
    if kind == LeafKind.DATETIME:
        now = datetime.datetime.now(datetime.timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    if kind == LeafKind.DATE:
        return datetime.date.today().isoformat()
    if kind == LeafKind.TIME:
        return datetime.datetime.now(datetime.timezone.utc).time().isoformat(timespec="seconds")
    if kind == LeafKind.GUID:
        return str(uuid.uuid4())
    members = descriptor.enum_members
    return members[0] if members else "UNKNOWN"


def example_json(example: Any) -> str:
    """Serialize an example value with stable indentation."""
    return json.dumps(example, indent=2, ensure_ascii=False, default=str)


class SchemaGenerator:
    """Builds a SchemaNode plus a matching example value for a type."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def generate(self, descriptor: TypeDescriptor | None) -> tuple[SchemaNode | None, Any]:
        """Return ``(schema, example)``; the root schema node carries the example.

        Each call uses its own active-type set, so calls never affect one
        another and repeated calls on the same type give the same structure.
        """
        if descriptor is None:
            return None, None
        node, example = self._walk(descriptor, set(), 1)
        return node.model_copy(update={"example": example}), example

    def _walk(self, descriptor: TypeDescriptor, active: set, depth: int) -> tuple[SchemaNode, Any]:
        descriptor = descriptor.nullable_underlying or descriptor

        kind = descriptor.leaf_kind
        if kind is not None:
            node = SchemaNode(
                kind=SchemaKind.PRIMITIVE,
                json_type=JSON_TYPES[kind],
                enum=descriptor.enum_members or None,
            )
            return node, leaf_example(descriptor, kind)

        if descriptor in active:
            node = SchemaNode(
                kind=SchemaKind.REF,
                json_type="object",
                ref_name=friendly_type_name(descriptor),
            )
            return node, None

        element = descriptor.element_type
        if element is not None:
            if depth > self.max_depth:
                return SchemaNode(kind=SchemaKind.ARRAY, json_type="array"), MAX_DEPTH_SENTINEL
            items, item_example = self._walk(element, active, depth + 1)
            return SchemaNode(kind=SchemaKind.ARRAY, json_type="array", items=items), [item_example]

        if depth > self.max_depth:
            return SchemaNode(kind=SchemaKind.OBJECT, json_type="object"), MAX_DEPTH_SENTINEL

        properties: dict[str, SchemaNode] = {}
        required: list[str] = []
        example: dict[str, Any] = {}
        active.add(descriptor)
        try:
            for prop in descriptor.properties:
                name = wire_name(prop)
                child, child_example = self._walk(prop.type, active, depth + 1)
                if prop.description:
                    child = child.model_copy(update={"description": prop.description.strip()})
                properties[name] = child
                example[name] = child_example
                if prop.required and name not in required:
                    required.append(name)
        finally:
            active.discard(descriptor)

        node = SchemaNode(
            kind=SchemaKind.OBJECT,
            json_type="object",
            properties=properties,
            required=required or None,
        )
        return node, example
