"""Parameter source classification.

Decides whether a parameter comes from the route, the query string, a form,
the request body or dependency injection. The rules are tried in a fixed
order and the last one always matches, so every parameter gets a source.
"""

import re
import typing
from typing import Iterable

from api_doc_catalog.models import AcceptsMetadata, ParamAnnotation, ParameterSource, RawParameter
from api_doc_catalog.schema.types import TypeDescriptor

ROUTE_PARAMETER_PATTERN = re.compile(r"{([^}]+)}")

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
JSON_CONTENT_TYPE = "application/json"

BODY_METHODS = {"POST", "PUT", "PATCH"}
QUERY_METHODS = {"GET", "HEAD"}


class ServiceRegistry:
    """Runtime probe for types that are injected rather than supplied by the caller."""

    def __init__(self, service_types: Iterable[type] = ()):
        self.service_types = tuple(service_types)

    def is_service(self, descriptor: TypeDescriptor) -> bool:
        annotation = getattr(descriptor, "annotation", None)
        if not self.service_types or not isinstance(annotation, type):
            return False
        if typing.get_origin(annotation) is not None:
            return False
        return issubclass(annotation, self.service_types)


def route_parameters(route: str) -> set[str]:
    """Placeholder names of a route template, constraint-stripped and lowercased."""
    return {
        match.split(":", 1)[0].strip().lower()
        for match in ROUTE_PARAMETER_PATTERN.findall(route)
    }


def _accepts_form(accepts: Iterable[AcceptsMetadata]) -> bool:
    return any(
        content_type.split(";", 1)[0].strip().lower() in FORM_CONTENT_TYPES
        for meta in accepts
        for content_type in meta.content_types
    )


def _accepts_json_for(descriptor: TypeDescriptor, accepts: Iterable[AcceptsMetadata]) -> bool:
    return any(
        meta.request_type == descriptor
        and any(ct.split(";", 1)[0].strip().lower() == JSON_CONTENT_TYPE for ct in meta.content_types)
        for meta in accepts
    )


def classify_parameter(
    parameter: RawParameter,
    route_params: set[str],
    http_method: str,
    accepts: Iterable[AcceptsMetadata] = (),
    services: ServiceRegistry | None = None,
) -> ParameterSource:
    """Return the source of one parameter; the first matching rule wins."""
    accepts = list(accepts)
    annotations = parameter.annotations

    if parameter.name.lower() in route_params:
        return ParameterSource.PATH
    if ParamAnnotation.FROM_QUERY in annotations:
        return ParameterSource.QUERY
    if ParamAnnotation.FROM_FORM in annotations or _accepts_form(accepts):
        return ParameterSource.FORM
    if ParamAnnotation.FROM_BODY in annotations or _accepts_json_for(parameter.param_type, accepts):
        return ParameterSource.BODY
    if ParamAnnotation.FROM_SERVICES in annotations:
        return ParameterSource.SERVICE
    if services is not None and services.is_service(parameter.param_type):
        return ParameterSource.SERVICE

    method = http_method.upper()
    if method in BODY_METHODS:
        return ParameterSource.BODY
    if method in QUERY_METHODS:
        return ParameterSource.QUERY
    # unknown verbs keep the parameter visible
    return ParameterSource.BODY
