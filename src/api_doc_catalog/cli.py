"""CLI entry point for api-doc-catalog."""

import functools
import importlib
import json
import logging
import sys
from pathlib import Path

import click
import yaml

from api_doc_catalog.discovery.fastapi_provider import FastApiMetadataProvider
from api_doc_catalog.models import ParameterSource, RouteTreeNode
from api_doc_catalog.options import load_options
from api_doc_catalog.service import (
    Documentation,
    DocumentationService,
    example_request_url,
    form_enctype,
    request_body_json,
)


def _load_app(app: str, app_dir: Path):
    """Import ``module:attribute`` the way ASGI servers do."""
    module_name, _, attribute = app.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter(f"expected 'module:attribute', got '{app}'", param_hint="APP")

    app_dir = str(app_dir.resolve())
    if app_dir not in sys.path:
        sys.path.insert(0, app_dir)

    try:
        instance = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}", param_hint="APP")
    try:
        for part in attribute.split("."):
            instance = getattr(instance, part)
    except AttributeError:
        raise click.BadParameter(f"'{module_name}' has no attribute '{attribute}'", param_hint="APP")
    return instance


def _build(app: str, app_dir: Path, config: Path | None) -> Documentation:
    try:
        options = load_options(config)
    except (yaml.YAMLError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--config")

    provider = FastApiMetadataProvider(_load_app(app, app_dir))
    return DocumentationService([provider], options, provider.services).build()


def app_options(command):
    """Shared APP argument plus --app-dir / --config options."""

    @click.argument("app")
    @click.option("--app-dir", default=".", type=click.Path(file_okay=False, path_type=Path), help="Directory added to the import path before loading APP.")
    @click.option("--config", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="YAML options file.")
    @functools.wraps(command)
    def wrapper(app: str, app_dir: Path, config: Path | None, **kwargs):
        return command(_build(app, app_dir, config), **kwargs)

    return wrapper


def _echo_tree(nodes: list[RouteTreeNode], level: int = 0) -> None:
    indent = "  " * level
    for node in nodes:
        click.echo(f"{indent}{node.name}")
        for endpoint in node.endpoints:
            click.echo(f"{indent}  {endpoint.http_method:<7} {endpoint.route}  [{endpoint.id}]")
        _echo_tree(node.children, level + 1)


@click.group()
@click.option("-v", "--verbose", count=True, help="Show diagnostics (-v info, -vv debug).")
def main(verbose: int):
    """API Doc Catalog: describe the endpoints and route tree of a FastAPI application."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@app_options
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write the catalog JSON to this file.")
def catalog(docs: Documentation, output: Path | None):
    """Print the flat endpoint catalog as JSON."""
    payload = {
        "api": {
            "name": docs.options.api_name,
            "version": docs.options.version,
            "description": docs.options.description,
        },
        "endpoints": [endpoint.model_dump(mode="json") for endpoint in docs.endpoints],
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        click.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Catalog with {len(docs.endpoints)} endpoints saved to {output}")


@main.command()
@app_options
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON instead of an outline.")
def tree(docs: Documentation, as_json: bool):
    """Print the navigation tree of the API's routes."""
    if as_json:
        click.echo(json.dumps([node.model_dump(mode="json") for node in docs.tree], indent=2, ensure_ascii=False))
    else:
        _echo_tree(docs.tree)


@main.command()
@app_options
@click.argument("endpoint_id")
def show(docs: Documentation, endpoint_id: str):
    """Show one endpoint with example request and response."""
    endpoint = docs.find_endpoint(endpoint_id)
    if endpoint is None:
        raise click.ClickException(f"No endpoint with id '{endpoint_id}'")

    click.echo(f"{endpoint.http_method} {endpoint.route}")
    click.echo(f"Summary: {endpoint.summary}")
    click.echo("")
    click.echo(endpoint.description)

    visible = [p for p in endpoint.parameters if p.is_value_parameter]
    if visible:
        click.echo("")
        click.echo("Parameters:")
        for param in visible:
            required = "required" if param.is_required else "optional"
            click.echo(f"  {param.name} ({param.type_label}, {param.source.value}, {required}): {param.description}")

    click.echo("")
    click.echo(f"Example request: {endpoint.http_method} {example_request_url(endpoint)}")
    body = request_body_json(endpoint)
    if body is not None:
        click.echo("Example body:")
        click.echo(body)
    if any(p.source == ParameterSource.FORM for p in endpoint.parameters):
        click.echo(f"Form encoding: {form_enctype(endpoint)}")
    click.echo(f"Returns: {endpoint.return_type_label}")
    if endpoint.example_json is not None:
        click.echo(endpoint.example_json)
