"""Parameter list and description assembly for a single operation."""

import logging
from dataclasses import dataclass, field

from api_doc_catalog.builder.classifier import ServiceRegistry, classify_parameter, route_parameters
from api_doc_catalog.models import (
    ParamAnnotation,
    ParameterDescriptor,
    ParameterSource,
    RawOperation,
    RawParameter,
    SchemaNode,
)
from api_doc_catalog.schema.generator import SchemaGenerator
from api_doc_catalog.schema.types import TypeDescriptor, friendly_type_name

logger = logging.getLogger(__name__)

TRAILING_PUNCTUATION = ".;:, "


def clean_text(text: str | None) -> str | None:
    """Strip whitespace and trailing punctuation; empty text becomes None."""
    if not text:
        return None
    cleaned = text.strip().rstrip(TRAILING_PUNCTUATION).strip()
    return cleaned or None


def is_valid_parameter_name(name: str | None) -> bool:
    """False for synthesized names such as ``<lambda>``, ``.0`` or ``$x``."""
    return bool(name) and name.isidentifier()


@dataclass
class ParameterBuildResult:
    parameters: list[ParameterDescriptor]
    description: str
    skipped: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)


class ParameterDescriptionBuilder:
    """Builds the documented parameter list and free-text description of an operation.

    The description lists every visible parameter, documented or not:
    undocumented ones get a ``"{Source} parameter"`` line, so the line set
    is a superset of the parameters lacking documentation. Injected
    services get a ``Service: Type`` line instead.
    """

    def __init__(self, generator: SchemaGenerator | None = None, services: ServiceRegistry | None = None):
        self.generator = generator or SchemaGenerator()
        self.services = services

    def build(self, operation: RawOperation, http_method: str) -> ParameterBuildResult:
        route_params = route_parameters(operation.route)
        docs = operation.docs

        parameters: list[ParameterDescriptor] = []
        skipped: list[str] = []
        services: list[str] = []
        service_lines: list[str] = []
        param_lines: list[str] = []

        for raw in operation.parameters:
            if not is_valid_parameter_name(raw.name):
                logger.warning("Skipping invalid parameter name '%s' for operation %s", raw.name, operation.name)
                skipped.append(raw.name)
                continue

            source = classify_parameter(raw, route_params, http_method, operation.accepts, self.services)
            type_label = friendly_type_name(raw.param_type)

            if source == ParameterSource.SERVICE:
                logger.debug("Parameter %s of %s is an injected service (%s)", raw.name, operation.name, type_label)
                services.append(raw.name)
                service_lines.append(f"Service: {type_label}")
                continue

            description = clean_text(docs.params.get(raw.name)) or f"{source.value} parameter"
            if (
                source == ParameterSource.QUERY
                and ParamAnnotation.FROM_QUERY in raw.annotations
                and raw.param_type.is_composite
            ):
                parameters.extend(self._expand_query_model(raw, description))
            else:
                parameters.append(self._describe(raw, source, description))
            param_lines.append(f"{raw.name} ({type_label}): {description}")

        lines = []
        summary = clean_text(docs.summary)
        if summary:
            lines.append(summary)
        lines.extend(service_lines)
        lines.extend(param_lines)
        returns = clean_text(docs.returns)
        if returns:
            lines.append(f"Returns: {returns}")
        remarks = clean_text(docs.remarks)
        if remarks:
            lines.append(f"Remarks: {remarks}")

        description = "\n".join(lines) or operation.name
        return ParameterBuildResult(parameters, description, skipped, services)

    def _describe(self, raw: RawParameter, source: ParameterSource, description: str) -> ParameterDescriptor:
        descriptor = raw.param_type
        nullable = descriptor.nullable_underlying is not None
        is_required = ParamAnnotation.REQUIRED in raw.annotations or not (raw.has_default or nullable)
        element = (descriptor.nullable_underlying or descriptor).element_type
        return ParameterDescriptor(
            name=raw.name,
            type_label=friendly_type_name(descriptor),
            source=source,
            is_required=is_required,
            is_collection=element is not None,
            element_type_label=friendly_type_name(element) if element is not None else None,
            description=description,
            schema_node=self._schema_for(source, descriptor),
        )

    def _expand_query_model(self, raw: RawParameter, fallback: str) -> list[ParameterDescriptor]:
        """One query parameter per property: the model arrives as separate query keys."""
        model = raw.param_type.nullable_underlying or raw.param_type
        result = []
        for prop in model.properties:
            element = (prop.type.nullable_underlying or prop.type).element_type
            result.append(
                ParameterDescriptor(
                    name=prop.wire_name or prop.name,
                    type_label=friendly_type_name(prop.type),
                    source=ParameterSource.QUERY,
                    is_required=prop.required,
                    is_collection=element is not None,
                    element_type_label=friendly_type_name(element) if element is not None else None,
                    description=clean_text(prop.description) or fallback,
                    schema_node=self._schema_for(ParameterSource.QUERY, prop.type),
                )
            )
        return result

    def _schema_for(self, source: ParameterSource, descriptor: TypeDescriptor) -> SchemaNode | None:
        if source in (ParameterSource.BODY, ParameterSource.FORM):
            return self.generator.generate(descriptor)[0]
        if source == ParameterSource.QUERY and descriptor.is_composite:
            return self.generator.generate(descriptor)[0]
        return None
