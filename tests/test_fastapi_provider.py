from typing import Annotated

from fastapi import Body, FastAPI, Query

from api_doc_catalog.builder.catalog import CatalogBuilder
from api_doc_catalog.discovery.fastapi_provider import FastApiMetadataProvider
from api_doc_catalog.models import ParamAnnotation, ParameterSource


def _operations(app):
    return {(op.route, tuple(op.http_methods)): op for op in FastApiMetadataProvider(app).get_operations()}


class TestFastApiMetadataProvider:
    def test_hidden_routes_are_skipped(self, sample_app):
        routes = {route for route, _ in _operations(sample_app)}
        assert "/health" not in routes
        assert "/items" in routes
        assert "/openapi.json" not in routes

    def test_query_parameters(self, sample_app):
        op = _operations(sample_app)[("/items", ("GET",))]
        params = {p.name: p for p in op.parameters}
        assert set(params) == {"q", "limit", "tags"}
        assert all(ParamAnnotation.FROM_QUERY in p.annotations for p in params.values())
        assert all(p.has_default for p in params.values())

    def test_docs_from_docstring_and_markers(self, sample_app):
        op = _operations(sample_app)[("/items", ("GET",))]
        assert op.docs.summary == "List items."
        assert op.docs.params["q"] == "Free text search."
        assert op.docs.params["limit"] == "Page size."

    def test_route_summary_overrides_docstring(self, sample_app):
        op = _operations(sample_app)[("/items", ("POST",))]
        assert op.docs.summary == "Create an item"
        (item,) = op.parameters
        assert ParamAnnotation.FROM_BODY in item.annotations

    def test_headers_dropped_and_dependencies_marked(self, sample_app):
        op = _operations(sample_app)[("/items/{item_id}", ("GET",))]
        params = {p.name: p for p in op.parameters}
        assert "x_token" not in params
        assert params["item_id"].annotations == frozenset()
        assert ParamAnnotation.FROM_SERVICES in params["store"].annotations

    def test_return_types(self, sample_app):
        ops = _operations(sample_app)
        assert ops[("/items/{item_id}", ("GET",))].return_type.name == "Item"
        assert ops[("/items", ("GET",))].return_type.name == "list"
        assert ops[("/items/{item_id}", ("DELETE",))].return_type is None
        assert ops[("/ping", ("GET",))].return_type is None

    def test_explicit_markers(self):
        app = FastAPI()

        @app.put("/notes/{note_id}")
        def update_note(
            note_id: int,
            text: Annotated[str, Body(embed=True)],
            dry_run: Annotated[bool, Query()] = False,
        ):
            return None

        (op,) = FastApiMetadataProvider(app).get_operations()
        params = {p.name: p for p in op.parameters}
        assert params["text"].annotations == frozenset({ParamAnnotation.FROM_BODY})
        assert params["text"].has_default is False
        assert params["dry_run"].annotations == frozenset({ParamAnnotation.FROM_QUERY})


class TestFastApiCatalog:
    def test_catalog_from_app(self, sample_app):
        provider = FastApiMetadataProvider(sample_app)
        catalog = CatalogBuilder(services=provider.services).build(provider.get_operations())
        assert [(e.http_method, e.route) for e in catalog.endpoints] == [
            ("GET", "/items"),
            ("POST", "/items"),
            ("DELETE", "/items/{item_id}"),
            ("GET", "/items/{item_id}"),
            ("GET", "/orders/{order_id}/lines"),
        ]

    def test_services_hidden_from_parameters(self, sample_app):
        provider = FastApiMetadataProvider(sample_app)
        catalog = CatalogBuilder(services=provider.services).build(provider.get_operations())
        endpoint = next(e for e in catalog.endpoints if e.http_method == "GET" and e.route == "/items/{item_id}")
        assert [(p.name, p.source) for p in endpoint.parameters] == [("item_id", ParameterSource.PATH)]
        assert endpoint.description.splitlines() == [
            "Fetch one item",
            "Service: Request",
            "Service: str",
            "item_id (int): Path parameter",
        ]
        assert catalog.stats.service_parameters == 2

    def test_body_schema(self, sample_app):
        provider = FastApiMetadataProvider(sample_app)
        catalog = CatalogBuilder(services=provider.services).build(provider.get_operations())
        endpoint = next(e for e in catalog.endpoints if e.http_method == "POST")
        body = endpoint.body_parameter
        assert body.name == "item"
        assert body.schema_node.example == {"name": "string", "price": 123.45}

    def test_plain_none_default_is_optional(self):
        app = FastAPI()

        @app.get("/search")
        def search(q: str = None) -> list[str]:
            return []

        (op,) = FastApiMetadataProvider(app).get_operations()
        (raw,) = op.parameters
        assert raw.has_default is True

        (endpoint,) = CatalogBuilder().build([op]).endpoints
        (param,) = endpoint.parameters
        assert param.source == ParameterSource.QUERY
        assert param.is_required is False
