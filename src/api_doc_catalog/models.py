"""Unified data models for the API documentation catalog.

Discovery providers describe operations with the raw input records
(RawOperation, RawParameter); the builders turn them into the immutable
EndpointDescriptor catalog and the RouteTreeNode navigation forest.
"""

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from api_doc_catalog.schema.types import TypeDescriptor, describe


class ParameterSource(str, Enum):
    """Where a parameter's value comes from at request time."""

    PATH = "Path"
    QUERY = "Query"
    BODY = "Body"
    FORM = "Form"
    SERVICE = "Service"
    UNKNOWN = "Unknown"


class ParamAnnotation(str, Enum):
    """Explicit source markers attached to a parameter at discovery time."""

    FROM_QUERY = "from_query"
    FROM_BODY = "from_body"
    FROM_FORM = "from_form"
    FROM_SERVICES = "from_services"
    REQUIRED = "required"


class SchemaKind(str, Enum):
    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    REF = "ref"


class SchemaNode(BaseModel):
    """Structural description of a type, analogous to a JSON Schema fragment."""

    kind: SchemaKind
    json_type: str | None = None
    properties: dict[str, "SchemaNode"] | None = None
    items: "SchemaNode | None" = None
    required: list[str] | None = None
    example: Any = None
    ref_name: str | None = None
    description: str | None = None
    enum: list | None = None

    def to_json_schema(self) -> dict:
        """Render as a plain JSON-Schema-like dictionary."""
        result: dict[str, Any] = {}
        if self.json_type:
            result["type"] = self.json_type
        if self.kind == SchemaKind.REF:
            result["$ref"] = f"#/components/schemas/{self.ref_name}"
        if self.properties is not None:
            result["properties"] = {
                name: child.to_json_schema() for name, child in self.properties.items()
            }
        if self.items is not None:
            result["items"] = self.items.to_json_schema()
        if self.required:
            result["required"] = list(self.required)
        if self.enum:
            result["enum"] = list(self.enum)
        if self.description:
            result["description"] = self.description
        if self.example is not None:
            result["example"] = self.example
        return result


class ParameterDescriptor(BaseModel):
    """A single documented parameter of an endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_label: str
    source: ParameterSource = ParameterSource.UNKNOWN
    is_required: bool
    is_collection: bool = False
    element_type_label: str | None = None
    description: str = ""
    schema_node: SchemaNode | None = None

    @model_validator(mode="after")
    def check_hidden_sources_have_no_schema(self):
        if not self.is_value_parameter and self.schema_node is not None:
            raise ValueError(f"{self.source.value} parameter '{self.name}' cannot carry a schema")
        return self

    @property
    def is_value_parameter(self) -> bool:
        """True for parameters the caller supplies (not injected, not unknown)."""
        return self.source not in (ParameterSource.SERVICE, ParameterSource.UNKNOWN)

    @property
    def is_from_body(self) -> bool:
        return self.source == ParameterSource.BODY


class EndpointDescriptor(BaseModel):
    """A single API operation with all its documentation metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    http_method: str  # GET / POST / PUT / DELETE / PATCH
    route: str  # /api/items/{id}
    summary: str
    description: str
    parameters: list[ParameterDescriptor] = []
    return_type_label: str
    return_schema: SchemaNode | None = None
    example_json: str | None = None

    @property
    def body_parameter(self) -> ParameterDescriptor | None:
        return next((p for p in self.parameters if p.is_from_body), None)


class RouteTreeNode(BaseModel):
    """One node of the navigation tree built from route path segments."""

    name: str
    endpoints: list[EndpointDescriptor] = []
    children: list["RouteTreeNode"] = []

    def iter_endpoints(self) -> Iterator[EndpointDescriptor]:
        yield from self.endpoints
        for child in self.children:
            yield from child.iter_endpoints()

    def endpoint_count(self) -> int:
        return sum(1 for _ in self.iter_endpoints())


# -- discovery input records ---------------------------------------------------


class OperationDocs(BaseModel):
    """Free-text documentation supplied alongside an operation."""

    summary: str | None = None
    params: dict[str, str] = {}
    returns: str | None = None
    remarks: str | None = None


class _TypedRecord(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class AcceptsMetadata(_TypedRecord):
    """Request content types an operation declares for a given request type."""

    request_type: TypeDescriptor | None = None
    content_types: list[str] = []

    @field_validator("request_type", mode="before")
    @classmethod
    def wrap_type(cls, value):
        return None if value is None else describe(value)


class RawParameter(_TypedRecord):
    """One parameter of an operation's signature, as discovered."""

    name: str
    param_type: TypeDescriptor
    annotations: frozenset[ParamAnnotation] = frozenset()
    has_default: bool = False

    @field_validator("param_type", mode="before")
    @classmethod
    def wrap_type(cls, value):
        return describe(value)


class RawOperation(_TypedRecord):
    """An operation as reported by a discovery provider."""

    name: str
    http_methods: list[str]
    route: str
    parameters: list[RawParameter] = []
    return_type: TypeDescriptor | None = None
    produces_type: TypeDescriptor | None = None  # overrides return_type when set
    accepts: list[AcceptsMetadata] = []
    docs: OperationDocs = Field(default_factory=OperationDocs)

    @field_validator("return_type", "produces_type", mode="before")
    @classmethod
    def wrap_type(cls, value):
        return None if value is None else describe(value)

    @property
    def response_type(self) -> TypeDescriptor | None:
        return self.produces_type or self.return_type
