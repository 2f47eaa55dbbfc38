"""Navigation tree construction from the flat endpoint catalog.

Endpoints are grouped by their first path segment and nested segment by
segment. A node left holding a single endpoint and no children is folded
into its parent, unless it has already absorbed a folded child itself, so
leaf operations stay shallow while real branching keeps its structure.
"""

import logging
from typing import Iterable

from api_doc_catalog.models import EndpointDescriptor, RouteTreeNode

logger = logging.getLogger(__name__)

ROOT_GROUP = "/"


def clean_segment(segment: str) -> str:
    """Bare parameter name for route placeholders, e.g. ``{id:int}`` -> ``id``."""
    if segment.startswith("{") and segment.endswith("}"):
        return segment[1:-1].split(":", 1)[0].strip("*?")
    return segment


def route_segments(route: str) -> list[str]:
    return [segment for segment in route.split("/") if segment]


class _Branch:
    def __init__(self, name: str):
        self.name = name
        self.endpoints: list[EndpointDescriptor] = []
        self.children: dict[str, _Branch] = {}
        self.absorbed = False

    def child(self, name: str) -> "_Branch":
        key = name.lower()
        if key not in self.children:
            logger.debug("Created child node: %s/%s", self.name, name)
            self.children[key] = _Branch(name)
        return self.children[key]


def _collapse(branch: _Branch) -> None:
    for key, child in list(branch.children.items()):
        _collapse(child)
        if len(child.endpoints) == 1 and not child.children and not child.absorbed:
            branch.endpoints.extend(child.endpoints)
            branch.absorbed = True
            del branch.children[key]
            logger.debug("Collapsed single-endpoint node %s into %s", child.name, branch.name)


def _freeze(branch: _Branch) -> RouteTreeNode:
    return RouteTreeNode(
        name=branch.name,
        endpoints=sorted(branch.endpoints, key=lambda e: (e.route, e.http_method)),
        children=sorted(
            (_freeze(child) for child in branch.children.values()),
            key=lambda node: node.name.lower(),
        ),
    )


def build_route_tree(endpoints: Iterable[EndpointDescriptor]) -> list[RouteTreeNode]:
    """Group endpoints into a sorted forest, one root node per first path segment."""
    groups: dict[str, _Branch] = {}
    for endpoint in endpoints:
        segments = route_segments(endpoint.route)
        if not segments:
            group_key = ROOT_GROUP
        else:
            group_key = clean_segment(segments[0]).lower()
        node = groups.setdefault(group_key, _Branch(group_key))
        for segment in segments[1:]:
            node = node.child(clean_segment(segment))
        node.endpoints.append(endpoint)
        logger.debug("Placed %s %s under %s", endpoint.http_method, endpoint.route, node.name)

    roots = []
    for group in groups.values():
        _collapse(group)
        roots.append(_freeze(group))
    return sorted(roots, key=lambda node: node.name.lower())


def count_endpoints(nodes: Iterable[RouteTreeNode]) -> int:
    return sum(node.endpoint_count() for node in nodes)
