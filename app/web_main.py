from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse
from lxml import etree

from app.config import AppSettings, load_settings
from app.route_wiring import RouteServices, build_route_services
from domain.models import RouteDiagram
from domain.records import record_from_json, record_to_json
from domain.services.build_route_diagram import RouteDiagramBuilder
from domain.services.edit_route_document import strip_bookkeeping
from domain.services.exchange_messages import create_messages_from_xml
from domain.xml_nodes import iter_routes, parse_route_xml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteContext:
    settings: AppSettings
    services: RouteServices
    edit_lock: threading.Lock = field(default_factory=threading.Lock)


def get_context(request: Request) -> RouteContext:
    return request.app.state.context


def create_app(settings: AppSettings, services: RouteServices | None = None) -> FastAPI:
    app = FastAPI(title=settings.routes.title)

    services = services or build_route_services(settings)
    context = RouteContext(settings=settings, services=services)
    app.state.context = context

    @app.get("/api/routes")
    def api_routes(context: RouteContext = Depends(get_context)) -> ORJSONResponse:
        items: list[dict[str, Any]] = []
        for path in context.services.repository.list_paths(context.settings.routes.routes_dir):
            try:
                root = context.services.repository.load(path).getroot()
            except ValueError:
                logger.exception("Skipping unreadable route document %s", path)
                continue
            route_ids = [route.get("id") or "" for route in iter_routes(root)]
            items.append({"document": path.stem, "route_ids": route_ids})
        return ORJSONResponse({"items": items})

    @app.get("/api/documents/{document}/outline")
    def api_outline(
        document: str,
        context: RouteContext = Depends(get_context),
    ) -> ORJSONResponse:
        root = load_document_root(context, document)
        nodes = context.services.editor().outline(root, document)
        return ORJSONResponse({"document": document, "nodes": [node.to_dict() for node in nodes]})

    @app.get("/api/documents/{document}/diagram")
    def api_diagram(
        document: str,
        route_id: str | None = Query(default=None),
        width: float | None = Query(default=None, gt=0),
        context: RouteContext = Depends(get_context),
    ) -> ORJSONResponse:
        root = load_document_root(context, document)
        # Correlation ids come from the outline keys.
        context.services.editor().outline(root, document)
        diagram = build_diagram(context, root, route_id, width)
        if route_id and not diagram.nodes:
            raise HTTPException(status_code=404, detail="Route not found")
        return ORJSONResponse(diagram.to_dict())

    @app.get("/api/documents/{document}/steps/{key}")
    def api_step(
        document: str,
        key: str,
        context: RouteContext = Depends(get_context),
    ) -> ORJSONResponse:
        root = load_document_root(context, document)
        record = context.services.editor().read_step(root, document, key)
        if record is None:
            raise HTTPException(status_code=404, detail="Step not found")
        return ORJSONResponse({"key": key, "record": record_to_json(record)})

    @app.put("/api/documents/{document}/steps/{key}")
    def api_update_step(
        document: str,
        key: str,
        payload: dict[str, Any] = Body(...),
        context: RouteContext = Depends(get_context),
    ) -> ORJSONResponse:
        try:
            record = record_from_json(payload)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        with context.edit_lock:
            path = resolve_document_path(context, document)
            try:
                tree = context.services.repository.load(path)
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            root = tree.getroot()
            updated = context.services.editor().update_step(root, document, key, record)
            if updated is None:
                raise HTTPException(status_code=404, detail="Step not found")
            result = record_to_json(updated)
            strip_bookkeeping(root)
            context.services.repository.save(tree, path)
        logger.info("Updated step %s in %s", key, path)
        return ORJSONResponse({"key": key, "record": result})

    @app.post("/api/exchanges/messages")
    async def api_exchange_messages(request: Request) -> ORJSONResponse:
        raw_bytes = await request.body()
        if not raw_bytes.strip():
            raise HTTPException(status_code=400, detail="Empty exchange document")
        try:
            root = parse_route_xml(raw_bytes)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        messages = create_messages_from_xml(root)
        return ORJSONResponse({"items": [message.to_dict() for message in messages]})

    return app


def resolve_document_path(context: RouteContext, document: str) -> Path:
    path = context.services.repository.resolve(context.settings.routes.routes_dir, document)
    if path is None:
        raise HTTPException(status_code=404, detail="Route document not found")
    return path


def load_document_root(context: RouteContext, document: str) -> etree._Element:
    path = resolve_document_path(context, document)
    try:
        return context.services.repository.load(path).getroot()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def build_diagram(
    context: RouteContext,
    root: etree._Element,
    route_id: str | None,
    width: float | None,
) -> RouteDiagram:
    builder = context.services.diagram
    if width is not None:
        builder = RouteDiagramBuilder(
            builder.schema, builder.icons, replace(builder.options, width=width)
        )
    return builder.build(root, route_id)


def create_default_app() -> FastAPI:
    return create_app(load_settings())
