"""Documentation options, loadable from a YAML file."""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from api_doc_catalog.schema.generator import DEFAULT_MAX_DEPTH


class TieBreak(str, Enum):
    """Criteria for choosing between duplicate discoveries of one (route, method)."""

    PARAMETER_COUNT = "parameter_count"  # more parameters wins
    KNOWN_RETURN_TYPE = "known_return_type"  # a resolvable return type wins
    PLAIN_SUMMARY = "plain_summary"  # a summary without the disambiguation marker wins


class DocumentatorOptions(BaseModel):
    api_name: str = "API"
    version: str = "v1"
    description: str = ""
    docs_base_url: str = "/docs"
    excluded_route_prefixes: list[str] = ["/get-metadata", "/openapi"]
    max_example_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1)
    always_keep_routes: list[str] = []
    tie_break_order: list[TieBreak] = [
        TieBreak.PARAMETER_COUNT,
        TieBreak.KNOWN_RETURN_TYPE,
        TieBreak.PLAIN_SUMMARY,
    ]
    disambiguation_marker: str = " ("


def load_options(path: Path | None = None) -> DocumentatorOptions:
    """Load options from a YAML file; no file or an empty file gives the defaults.

    Raises yaml.YAMLError for malformed YAML and pydantic.ValidationError
    for values of the wrong shape.
    """
    if path is None:
        return DocumentatorOptions()
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return DocumentatorOptions()
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of options, got {type(data).__name__}")
    return DocumentatorOptions(**data)
