from api_doc_catalog.builder.catalog import endpoint_id
from api_doc_catalog.builder.tree import build_route_tree, clean_segment, count_endpoints
from api_doc_catalog.models import EndpointDescriptor


def _endpoint(method: str, route: str) -> EndpointDescriptor:
    return EndpointDescriptor(
        id=endpoint_id(method, route),
        http_method=method,
        route=route,
        summary=route,
        description=route,
        return_type_label="str",
    )


class TestCleanSegment:
    def test_placeholder(self):
        assert clean_segment("{id:int}") == "id"
        assert clean_segment("{*path}") == "path"
        assert clean_segment("{slug?}") == "slug"

    def test_literal(self):
        assert clean_segment("orders") == "orders"


class TestBuildRouteTree:
    def test_single_endpoint_folds_into_parent(self):
        (root,) = build_route_tree([_endpoint("GET", "/a/b"), _endpoint("GET", "/a/c/d")])
        assert root.name == "a"
        assert [e.route for e in root.endpoints] == ["/a/b"]
        (child,) = root.children
        assert child.name == "c"
        assert [e.route for e in child.endpoints] == ["/a/c/d"]
        assert child.children == []

    def test_branching_keeps_structure(self):
        endpoints = [
            _endpoint("GET", "/orders/{id}"),
            _endpoint("DELETE", "/orders/{id}"),
            _endpoint("GET", "/orders"),
        ]
        (root,) = build_route_tree(endpoints)
        assert [e.route for e in root.endpoints] == ["/orders"]
        (child,) = root.children
        assert child.name == "id"
        assert [e.http_method for e in child.endpoints] == ["DELETE", "GET"]

    def test_root_route_grouped_under_slash(self):
        (root,) = build_route_tree([_endpoint("GET", "/")])
        assert root.name == "/"
        assert len(root.endpoints) == 1

    def test_groups_are_case_insensitive(self):
        roots = build_route_tree([_endpoint("GET", "/Orders"), _endpoint("POST", "/orders")])
        assert [node.name for node in roots] == ["orders"]
        assert len(roots[0].endpoints) == 2

    def test_roots_and_children_are_sorted(self):
        endpoints = [
            _endpoint("GET", "/zeta"),
            _endpoint("GET", "/Alpha/x/1"),
            _endpoint("GET", "/Alpha/x/2"),
            _endpoint("GET", "/Alpha/B/1"),
            _endpoint("GET", "/Alpha/B/2"),
        ]
        roots = build_route_tree(endpoints)
        assert [node.name for node in roots] == ["alpha", "zeta"]
        assert [node.name for node in roots[0].children] == ["B", "x"]

    def test_every_endpoint_appears_once(self):
        endpoints = [
            _endpoint("GET", "/a"),
            _endpoint("GET", "/a/b"),
            _endpoint("POST", "/a/b"),
            _endpoint("GET", "/a/b/c/d"),
            _endpoint("GET", "/x/{id}"),
            _endpoint("GET", "/"),
        ]
        roots = build_route_tree(endpoints)
        assert count_endpoints(roots) == len(endpoints)
        seen = [e.id for node in roots for e in node.iter_endpoints()]
        assert sorted(seen) == sorted(e.id for e in endpoints)

    def test_empty_catalog(self):
        assert build_route_tree([]) == []
