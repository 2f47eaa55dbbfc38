"""Documentation service: runs the full pipeline and answers lookups on the result.

Every call to ``build()`` rebuilds the catalog and the tree from the live
providers; nothing is cached between calls.
"""

import json
import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import quote, urlencode

from api_doc_catalog.builder.catalog import Catalog, CatalogBuilder
from api_doc_catalog.builder.classifier import ServiceRegistry
from api_doc_catalog.builder.tree import build_route_tree
from api_doc_catalog.discovery.base import MetadataProvider, collect_operations
from api_doc_catalog.models import EndpointDescriptor, ParameterDescriptor, ParameterSource, RouteTreeNode
from api_doc_catalog.options import DocumentatorOptions
from api_doc_catalog.schema.generator import example_json

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM = "multipart/form-data"

FILE_TYPE_LABELS = {"uploadfile", "bytes", "file"}

_FALLBACK_EXAMPLES = {
    "str": "example",
    "string": "example",
    "int": "123",
    "integer": "123",
    "float": "123.45",
    "decimal": "123.45",
    "number": "123.45",
    "bool": "true",
    "boolean": "true",
}


@dataclass
class Documentation:
    options: DocumentatorOptions
    catalog: Catalog
    tree: list[RouteTreeNode]

    @property
    def endpoints(self) -> list[EndpointDescriptor]:
        return self.catalog.endpoints

    def find_endpoint(self, endpoint_id: str | None) -> EndpointDescriptor | None:
        return self.catalog.find(endpoint_id)


class DocumentationService:
    """Builds documentation from a set of discovery providers."""

    def __init__(
        self,
        providers: Iterable[MetadataProvider],
        options: DocumentatorOptions | None = None,
        services: ServiceRegistry | None = None,
    ):
        self.providers = list(providers)
        self.options = options or DocumentatorOptions()
        self.services = services

    def build(self) -> Documentation:
        operations = collect_operations(self.providers)
        catalog = CatalogBuilder(self.options, self.services).build(operations)
        return Documentation(self.options, catalog, build_route_tree(catalog.endpoints))


def _unwrap_label(label: str) -> str:
    match = re.fullmatch(r"Optional<(.+)>", label)
    return match.group(1) if match else label


def parameter_example(param: ParameterDescriptor) -> str:
    """Example value of a path or query parameter, as it would appear in a URL."""
    if param.schema_node is not None and param.schema_node.example is not None:
        example = param.schema_node.example
        return example if isinstance(example, str) else json.dumps(example)
    label = param.element_type_label if param.is_collection and param.element_type_label else param.type_label
    return _FALLBACK_EXAMPLES.get(_unwrap_label(label).lower(), "example")


def example_request_url(endpoint: EndpointDescriptor) -> str:
    """The endpoint's route with path placeholders filled and example query keys appended."""
    url = endpoint.route
    for param in endpoint.parameters:
        if param.source != ParameterSource.PATH:
            continue
        value = quote(parameter_example(param), safe="")
        pattern = re.compile(r"{\*?%s(:[^}]*)?\??}" % re.escape(param.name), re.IGNORECASE)
        url = pattern.sub(lambda _: value, url)

    query = []
    for param in endpoint.parameters:
        if param.source != ParameterSource.QUERY:
            continue
        repeat = 2 if param.is_collection else 1
        query.extend((param.name, parameter_example(param)) for _ in range(repeat))
    if query:
        url = f"{url}?{urlencode(query)}"
    return url


def request_body_json(endpoint: EndpointDescriptor) -> str | None:
    body = endpoint.body_parameter
    if body is None or body.schema_node is None:
        return None
    return example_json(body.schema_node.example)


def form_enctype(endpoint: EndpointDescriptor | None) -> str:
    """multipart/form-data when any form parameter carries a file, else url-encoded."""
    if endpoint is None:
        return FORM_URLENCODED
    for param in endpoint.parameters:
        if param.source != ParameterSource.FORM:
            continue
        labels = {_unwrap_label(param.type_label).lower()}
        if param.element_type_label:
            labels.add(param.element_type_label.lower())
        if labels & FILE_TYPE_LABELS:
            return MULTIPART_FORM
    return FORM_URLENCODED
