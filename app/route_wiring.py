from __future__ import annotations

from dataclasses import dataclass

from adapters.filesystem.route_repository import FileSystemRouteRepository
from adapters.schema.json_schema_lookup import JsonEndpointIconLookup, JsonSchemaLookup
from app.config import AppSettings
from domain.ports.schema import EndpointIconLookup, SchemaLookup
from domain.services.build_route_diagram import RouteDiagramBuilder
from domain.services.build_route_outline import RouteOutlineBuilder
from domain.services.decode_route_node import RouteNodeDecoder
from domain.services.edit_route_document import RouteDocumentEditor
from domain.services.encode_route_node import RouteNodeEncoder


@dataclass(frozen=True)
class RouteServices:
    schema: SchemaLookup
    icons: EndpointIconLookup | None
    repository: FileSystemRouteRepository
    outline: RouteOutlineBuilder
    diagram: RouteDiagramBuilder

    def editor(self) -> RouteDocumentEditor:
        # One decoder per parsed document; its cache is keyed by element.
        decoder = RouteNodeDecoder(self.schema)
        return RouteDocumentEditor(self.outline, decoder, RouteNodeEncoder(decoder))


def build_schema_lookup(settings: AppSettings) -> SchemaLookup:
    return JsonSchemaLookup.from_path(settings.routes.schema_path)


def build_icon_lookup(settings: AppSettings) -> EndpointIconLookup | None:
    icons_path = settings.routes.endpoint_icons_path
    if icons_path is None or not icons_path.exists():
        return None
    return JsonEndpointIconLookup.from_path(icons_path)


def build_route_services(
    settings: AppSettings,
    schema: SchemaLookup | None = None,
    icons: EndpointIconLookup | None = None,
) -> RouteServices:
    schema = schema or build_schema_lookup(settings)
    icons = icons or build_icon_lookup(settings)
    return RouteServices(
        schema=schema,
        icons=icons,
        repository=FileSystemRouteRepository(),
        outline=RouteOutlineBuilder(schema),
        diagram=RouteDiagramBuilder(schema, icons, settings.diagram.to_options()),
    )
