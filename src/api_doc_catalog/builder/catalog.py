"""Endpoint catalog assembly: ids, exclusions, duplicate resolution and noise filtering."""

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterable

from api_doc_catalog.builder.classifier import ServiceRegistry
from api_doc_catalog.builder.parameters import ParameterDescriptionBuilder, clean_text
from api_doc_catalog.models import EndpointDescriptor, RawOperation
from api_doc_catalog.options import DocumentatorOptions, TieBreak
from api_doc_catalog.schema.generator import SchemaGenerator, example_json
from api_doc_catalog.schema.types import UNKNOWN_TYPE_NAME, friendly_type_name

logger = logging.getLogger(__name__)

# example payloads hold fresh uuids and timestamps
EXAMPLE_FIELDS = {
    "return_schema": {"example"},
    "example_json": True,
    "parameters": {"__all__": {"schema_node": {"example"}}},
}


def endpoint_id(http_method: str, route: str) -> str:
    """Stable URL-safe id of an operation, case-insensitive in both method and route."""
    digest = hashlib.md5(f"{http_method}:{route}".lower().encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def normalize_route(route: str) -> str:
    route = route.strip()
    return route if route.startswith("/") else f"/{route}"


@dataclass
class CatalogStats:
    discovered: int = 0
    excluded: int = 0
    duplicates: int = 0
    degenerate: int = 0
    skipped_parameters: int = 0
    service_parameters: int = 0


@dataclass
class Catalog:
    """The flat, deduplicated endpoint list, sorted by route then method."""

    endpoints: list[EndpointDescriptor]
    stats: CatalogStats = field(default_factory=CatalogStats)

    def find(self, endpoint_id: str | None) -> EndpointDescriptor | None:
        if not endpoint_id or not endpoint_id.strip():
            return None
        return next((e for e in self.endpoints if e.id == endpoint_id), None)


class CatalogBuilder:
    """Turns raw operations from any number of providers into one catalog."""

    def __init__(self, options: DocumentatorOptions | None = None, services: ServiceRegistry | None = None):
        self.options = options or DocumentatorOptions()
        self.services = services

    def build(self, operations: Iterable[RawOperation]) -> Catalog:
        stats = CatalogStats()
        generator = SchemaGenerator(self.options.max_example_depth)
        parameter_builder = ParameterDescriptionBuilder(generator, self.services)

        candidates: list[EndpointDescriptor] = []
        for operation in operations:
            for http_method in operation.http_methods:
                endpoint = self._describe(operation, http_method.upper(), parameter_builder, generator, stats)
                stats.discovered += 1
                if self._is_excluded(endpoint.route):
                    logger.debug("Excluded %s %s", endpoint.http_method, endpoint.route)
                    stats.excluded += 1
                    continue
                candidates.append(endpoint)

        groups: dict[tuple[str, str], list[EndpointDescriptor]] = {}
        for endpoint in candidates:
            groups.setdefault((endpoint.route.lower(), endpoint.http_method), []).append(endpoint)

        endpoints = []
        for (route, method), group in groups.items():
            if len(group) > 1:
                stats.duplicates += len(group) - 1
                logger.debug("Resolving %d duplicates of %s %s", len(group), method, route)
            winner = min(group, key=self._preference_key)
            if self._is_degenerate(winner):
                logger.debug("Dropped degenerate endpoint %s %s", winner.http_method, winner.route)
                stats.degenerate += 1
                continue
            endpoints.append(winner)

        endpoints.sort(key=lambda e: (e.route, e.http_method))
        logger.info(
            "Catalog built: %d endpoints (%d discovered, %d excluded, %d duplicates, %d degenerate)",
            len(endpoints),
            stats.discovered,
            stats.excluded,
            stats.duplicates,
            stats.degenerate,
        )
        return Catalog(endpoints, stats)

    def _describe(
        self,
        operation: RawOperation,
        http_method: str,
        parameter_builder: ParameterDescriptionBuilder,
        generator: SchemaGenerator,
        stats: CatalogStats,
    ) -> EndpointDescriptor:
        route = normalize_route(operation.route)
        built = parameter_builder.build(operation, http_method)
        stats.skipped_parameters += len(built.skipped)
        stats.service_parameters += len(built.services)

        response_type = operation.response_type
        return_schema, example = generator.generate(response_type)
        return EndpointDescriptor(
            id=endpoint_id(http_method, route),
            http_method=http_method,
            route=route,
            summary=clean_text(operation.docs.summary) or operation.name,
            description=built.description,
            parameters=built.parameters,
            return_type_label=friendly_type_name(response_type),
            return_schema=return_schema,
            example_json=example_json(example) if return_schema is not None else None,
        )

    def _is_excluded(self, route: str) -> bool:
        route = route.lower()
        return any(route.startswith(prefix.lower()) for prefix in self.options.excluded_route_prefixes)

    def _is_degenerate(self, endpoint: EndpointDescriptor) -> bool:
        if endpoint.return_type_label != UNKNOWN_TYPE_NAME or endpoint.parameters:
            return False
        keep = {route.lower() for route in self.options.always_keep_routes}
        return endpoint.route.lower() not in keep

    def _preference_key(self, endpoint: EndpointDescriptor) -> tuple:
        """Lower sorts first; the serialized endpoint closes every remaining tie."""
        key = []
        for criterion in self.options.tie_break_order:
            if criterion == TieBreak.PARAMETER_COUNT:
                key.append(-len(endpoint.parameters))
            elif criterion == TieBreak.KNOWN_RETURN_TYPE:
                key.append(0 if endpoint.return_type_label != UNKNOWN_TYPE_NAME else 1)
            elif criterion == TieBreak.PLAIN_SUMMARY:
                key.append(1 if self.options.disambiguation_marker in endpoint.summary else 0)
        key.append(endpoint.model_dump_json(exclude=EXAMPLE_FIELDS))
        return tuple(key)
