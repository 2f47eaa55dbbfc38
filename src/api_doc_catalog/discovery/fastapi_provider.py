"""FastAPI discovery provider.

Reads ``APIRoute`` objects from an application and reports each as a
RawOperation. FastAPI parameter markers become ParamAnnotations; unmarked
parameters follow FastAPI's own rules (scalars and sequences come from the
query string, pydantic models from the body).
"""

import inspect
import logging
import typing
from types import NoneType
from typing import Annotated, Any

from fastapi import BackgroundTasks, FastAPI, Request, Response, WebSocket, params
from fastapi.routing import APIRoute
from fastapi.security import SecurityScopes
from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined
from starlette.requests import HTTPConnection

from api_doc_catalog.builder.classifier import ServiceRegistry, route_parameters
from api_doc_catalog.discovery.docstrings import parse_docstring
from api_doc_catalog.models import OperationDocs, ParamAnnotation, RawOperation, RawParameter
from api_doc_catalog.schema.types import describe

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_TYPES = (Request, Response, WebSocket, HTTPConnection, BackgroundTasks, SecurityScopes)

_MARKER_TYPES = (params.Param, params.Body, params.Depends)


def _find_marker(parameter: inspect.Parameter, annotation) -> Any:
    if typing.get_origin(annotation) is Annotated:
        for meta in typing.get_args(annotation)[1:]:
            if isinstance(meta, _MARKER_TYPES):
                return meta
    if isinstance(parameter.default, _MARKER_TYPES):
        return parameter.default
    return None


def _has_default(parameter: inspect.Parameter, marker) -> bool:
    if parameter.default is not inspect.Parameter.empty and (marker is None or parameter.default is not marker):
        return True
    if isinstance(marker, FieldInfo):
        if marker.default_factory is not None:
            return True
        return marker.default is not Ellipsis and marker.default is not PydanticUndefined
    return False


def _is_model(annotation) -> bool:
    descriptor = describe(annotation)
    inner = getattr(descriptor.nullable_underlying or descriptor, "annotation", None)
    return isinstance(inner, type) and typing.get_origin(inner) is None and issubclass(inner, BaseModel)


class FastApiMetadataProvider:
    """Discovers operations from a FastAPI application's routes."""

    def __init__(self, app: FastAPI, service_types=DEFAULT_SERVICE_TYPES):
        self.app = app
        self.services = ServiceRegistry(service_types)

    def get_operations(self) -> list[RawOperation]:
        operations = []
        for route in self.app.routes:
            if not isinstance(route, APIRoute) or not route.include_in_schema:
                continue
            operations.append(self._describe_route(route))
        logger.debug("Discovered %d FastAPI operations", len(operations))
        return operations

    def _describe_route(self, route: APIRoute) -> RawOperation:
        endpoint = route.endpoint
        docs = parse_docstring(inspect.getdoc(endpoint))
        if route.summary:
            docs = docs.model_copy(update={"summary": route.summary})
        elif not docs.summary and route.description:
            docs = docs.model_copy(update={"summary": route.description})

        try:
            hints = typing.get_type_hints(endpoint, include_extras=True)
        except (NameError, TypeError) as e:
            logger.warning("Cannot resolve type hints of %s: %s", route.name, e)
            hints = {}

        raw_parameters = self._describe_parameters(route, endpoint, hints, docs)

        return RawOperation(
            name=route.name,
            http_methods=sorted(route.methods),
            route=route.path,
            parameters=raw_parameters,
            return_type=self._return_type(route, hints),
            docs=docs,
        )

    def _describe_parameters(self, route: APIRoute, endpoint, hints: dict, docs: OperationDocs) -> list[RawParameter]:
        placeholders = route_parameters(route.path)
        result = []
        for name, parameter in inspect.signature(endpoint).parameters.items():
            annotation = hints.get(name, parameter.annotation)
            marker = _find_marker(parameter, annotation)

            if isinstance(marker, (params.Header, params.Cookie)):
                logger.debug("Skipping %s parameter %s of %s", type(marker).__name__, name, route.name)
                continue

            annotations = set()
            if isinstance(marker, params.Depends):
                annotations.add(ParamAnnotation.FROM_SERVICES)
            elif isinstance(marker, params.Form):
                annotations.add(ParamAnnotation.FROM_FORM)
            elif isinstance(marker, params.Body):
                annotations.add(ParamAnnotation.FROM_BODY)
            elif isinstance(marker, params.Query):
                annotations.add(ParamAnnotation.FROM_QUERY)
            elif marker is None and name.lower() not in placeholders:
                descriptor = describe(annotation)
                if _is_model(annotation):
                    annotations.add(ParamAnnotation.FROM_BODY)
                elif not descriptor.is_composite and not self.services.is_service(descriptor):
                    annotations.add(ParamAnnotation.FROM_QUERY)

            description = getattr(marker, "description", None)
            if description and name not in docs.params:
                docs.params[name] = description

            result.append(
                RawParameter(
                    name=name,
                    param_type=annotation,
                    annotations=annotations,
                    has_default=_has_default(parameter, marker),
                )
            )
        return result

    def _return_type(self, route: APIRoute, hints: dict):
        if route.response_model is not None:
            return route.response_model
        annotation = hints.get("return")
        if annotation is None or annotation is NoneType:
            return None
        if isinstance(annotation, type) and typing.get_origin(annotation) is None and issubclass(annotation, Response):
            return None
        return annotation
