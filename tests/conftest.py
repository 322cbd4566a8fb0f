from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from adapters.schema.json_schema_lookup import JsonEndpointIconLookup, JsonSchemaLookup
from app.config import AppSettings, DiagramSettings, RoutesSettings
from domain.services.build_route_outline import RouteOutlineBuilder
from domain.services.decode_route_node import RouteNodeDecoder
from domain.services.encode_route_node import RouteNodeEncoder
from tests.helpers.route_fixtures import repo_root


def _clear_routes_env() -> None:
    for key in list(os.environ):
        if key.startswith("ROUTES_"):
            os.environ.pop(key, None)


_clear_routes_env()


@pytest.fixture(autouse=True)
def clear_routes_env() -> Generator[None, None, None]:
    _clear_routes_env()
    yield
    _clear_routes_env()


@pytest.fixture
def schema_path() -> Path:
    return repo_root() / "data" / "schema" / "route-model.json"


@pytest.fixture
def icons_path() -> Path:
    return repo_root() / "data" / "schema" / "endpoint-icons.json"


@pytest.fixture
def schema(schema_path: Path) -> JsonSchemaLookup:
    return JsonSchemaLookup.from_path(schema_path)


@pytest.fixture
def icons(icons_path: Path) -> JsonEndpointIconLookup:
    return JsonEndpointIconLookup.from_path(icons_path)


@pytest.fixture
def decoder(schema: JsonSchemaLookup) -> RouteNodeDecoder:
    return RouteNodeDecoder(schema)


@pytest.fixture
def encoder(decoder: RouteNodeDecoder) -> RouteNodeEncoder:
    return RouteNodeEncoder(decoder)


@pytest.fixture
def outline_builder(schema: JsonSchemaLookup) -> RouteOutlineBuilder:
    return RouteOutlineBuilder(schema)


@pytest.fixture
def routes_dir(tmp_path: Path) -> Path:
    target = tmp_path / "routes"
    shutil.copytree(repo_root() / "data" / "routes", target)
    return target


@pytest.fixture
def routes_settings(routes_dir: Path, schema_path: Path, icons_path: Path) -> RoutesSettings:
    return RoutesSettings(
        title="Test Routes",
        routes_dir=routes_dir,
        schema_path=schema_path,
        endpoint_icons_path=icons_path,
    )


@pytest.fixture
def app_settings(routes_settings: RoutesSettings) -> AppSettings:
    return AppSettings(routes=routes_settings, diagram=DiagramSettings())


@pytest.fixture
def app_settings_factory(
    routes_settings: RoutesSettings,
) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return AppSettings(routes=routes_settings, diagram=DiagramSettings(**overrides))

    return _factory
