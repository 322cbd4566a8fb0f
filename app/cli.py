from __future__ import annotations

import json
from pathlib import Path

import orjson
import typer
import uvicorn
from lxml import etree
from rich.console import Console
from rich.tree import Tree

from adapters.filesystem.json_utils import dump_json_bytes, write_json_atomic
from adapters.filesystem.route_repository import FileSystemRouteRepository
from adapters.schema.json_schema_lookup import JsonEndpointIconLookup, JsonSchemaLookup
from app.config import load_settings
from domain.models import DiagramOptions, RouteStepNode
from domain.records import record_from_json, record_to_json
from domain.services.build_route_diagram import RouteDiagramBuilder
from domain.services.build_route_outline import RouteOutlineBuilder
from domain.services.decode_route_node import RouteNodeDecoder
from domain.services.edit_route_document import RouteDocumentEditor, strip_bookkeeping
from domain.services.encode_route_node import RouteNodeEncoder
from domain.services.exchange_messages import create_messages_from_xml
from domain.xml_nodes import iter_routes

app = typer.Typer(no_args_is_help=True)
console = Console()


def _load_schema(schema_path: Path | None) -> JsonSchemaLookup:
    path = schema_path or load_settings().routes.schema_path
    try:
        return JsonSchemaLookup.from_path(path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Cannot load route model:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load_document(input_path: Path) -> etree._ElementTree:
    try:
        return FileSystemRouteRepository().load(input_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Cannot read route document:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _build_editor(schema: JsonSchemaLookup) -> RouteDocumentEditor:
    decoder = RouteNodeDecoder(schema)
    return RouteDocumentEditor(RouteOutlineBuilder(schema), decoder, RouteNodeEncoder(decoder))


def _add_branch(tree: Tree, node: RouteStepNode) -> None:
    branch = tree.add(f"[bold]{node.label}[/] [dim]{node.key}[/]")
    for child in node.children:
        _add_branch(branch, child)


@app.command("outline")
def outline(
    input_path: Path = typer.Argument(..., help="Route XML document."),
    schema_path: Path | None = typer.Option(None, "--schema", help="Route model JSON."),
) -> None:
    editor = _build_editor(_load_schema(schema_path))
    root = _load_document(input_path).getroot()
    tree = Tree(f"[green]{input_path.stem}[/]")
    for node in editor.outline(root, input_path.stem):
        _add_branch(tree, node)
    console.print(tree)


@app.command("diagram")
def diagram(
    input_path: Path = typer.Argument(..., help="Route XML document."),
    route_id: str | None = typer.Option(None, help="Render only this route."),
    output: Path | None = typer.Option(None, help="Write the diagram JSON here."),
    schema_path: Path | None = typer.Option(None, "--schema", help="Route model JSON."),
    icons_path: Path | None = typer.Option(None, "--icons", help="Endpoint scheme to icon JSON map."),
) -> None:
    settings = load_settings()
    schema = _load_schema(schema_path)
    icons_file = icons_path or settings.routes.endpoint_icons_path
    icons = JsonEndpointIconLookup.from_path(icons_file) if icons_file and icons_file.exists() else None
    options: DiagramOptions = settings.diagram.to_options()

    root = _load_document(input_path).getroot()
    _build_editor(schema).outline(root, input_path.stem)
    result = RouteDiagramBuilder(schema, icons, options).build(root, route_id)
    payload = result.to_dict()
    if output is None:
        console.print_json(dump_json_bytes(payload).decode("utf-8"))
        return
    write_json_atomic(output, payload)
    console.print(
        f"[green]Wrote[/] {output} ({len(result.nodes)} nodes, {len(result.links)} links)"
    )


@app.command("decode")
def decode(
    input_path: Path = typer.Argument(..., help="Route XML document."),
    key: str = typer.Argument(..., help="Outline key of the step."),
    schema_path: Path | None = typer.Option(None, "--schema", help="Route model JSON."),
) -> None:
    editor = _build_editor(_load_schema(schema_path))
    root = _load_document(input_path).getroot()
    record = editor.read_step(root, input_path.stem, key)
    if record is None:
        console.print(f"[red]Step not found:[/] {key}")
        raise typer.Exit(code=1)
    console.print_json(orjson.dumps(record_to_json(record)).decode("utf-8"))


@app.command("encode")
def encode(
    input_path: Path = typer.Argument(..., help="Route XML document."),
    key: str = typer.Argument(..., help="Outline key of the step."),
    record_json: str = typer.Argument(..., help="Record as a JSON object or a path to one."),
    output: Path | None = typer.Option(None, help="Write here instead of updating in place."),
    schema_path: Path | None = typer.Option(None, "--schema", help="Route model JSON."),
) -> None:
    candidate = Path(record_json)
    raw = candidate.read_text(encoding="utf-8") if candidate.is_file() else record_json
    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            msg = "record must be a JSON object"
            raise ValueError(msg)
        record = record_from_json(payload)
    except ValueError as exc:
        console.print(f"[red]Invalid record:[/] {exc}")
        raise typer.Exit(code=1) from exc

    editor = _build_editor(_load_schema(schema_path))
    repository = FileSystemRouteRepository()
    document = _load_document(input_path)
    root = document.getroot()
    if editor.update_step(root, input_path.stem, key, record) is None:
        console.print(f"[red]Step not found:[/] {key}")
        raise typer.Exit(code=1)
    strip_bookkeeping(root)
    target_path = output or input_path
    repository.save(document, target_path)
    console.print(f"[green]Wrote[/] {target_path}")


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Route XML document to validate."),
    schema_path: Path | None = typer.Option(None, "--schema", help="Route model JSON."),
) -> None:
    editor = _build_editor(_load_schema(schema_path))
    root = _load_document(input_path).getroot()
    routes = iter_routes(root)
    if not routes:
        console.print(f"[red]No routes found in[/] {input_path}")
        raise typer.Exit(code=1)
    steps = sum(
        1 for node in editor.outline(root, input_path.stem) for _ in node.iter_nodes()
    )
    console.print(f"[green]Valid route document:[/] {input_path} ({len(routes)} routes, {steps} steps)")


@app.command("messages")
def messages(
    input_path: Path = typer.Argument(..., help="Traced exchange XML."),
    output: Path | None = typer.Option(None, help="Write the messages JSON here."),
) -> None:
    root = _load_document(input_path).getroot()
    items = [message.to_dict() for message in create_messages_from_xml(root)]
    if not items:
        console.print(f"[red]No exchanges found in[/] {input_path}")
        raise typer.Exit(code=1)
    payload = {"items": items}
    if output is None:
        console.print_json(dump_json_bytes(payload).decode("utf-8"))
        return
    write_json_atomic(output, payload)
    console.print(f"[green]Wrote[/] {output} ({len(items)} messages)")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    uvicorn.run("app.web_main:create_default_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
