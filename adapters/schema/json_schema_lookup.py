from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from adapters.filesystem.json_utils import load_json
from domain.models import LanguageSettings, StepDefinition
from domain.ports.schema import EndpointIconLookup, SchemaLookup


class JsonSchemaLookup(SchemaLookup):
    """Read-only snapshot of a route model file.

    The file holds a ``definitions`` object keyed by step tag and a
    ``languages`` object keyed by expression language name.
    """

    def __init__(
        self,
        definitions: Mapping[str, StepDefinition],
        languages: Mapping[str, LanguageSettings],
    ) -> None:
        self._definitions = MappingProxyType(dict(definitions))
        self._languages = MappingProxyType(dict(languages))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> JsonSchemaLookup:
        try:
            definitions = {
                str(tag): StepDefinition.model_validate(definition)
                for tag, definition in _as_mapping(payload.get("definitions")).items()
            }
            languages = {
                str(name): LanguageSettings.model_validate(settings)
                for name, settings in _as_mapping(payload.get("languages")).items()
            }
        except ValidationError as exc:
            msg = f"Invalid route model: {exc}"
            raise ValueError(msg) from exc
        return cls(definitions, languages)

    @classmethod
    def from_path(cls, path: Path) -> JsonSchemaLookup:
        if not path.exists():
            msg = f"Route model not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_dict(load_json(path))

    def definition_for(self, tag: str) -> StepDefinition | None:
        return self._definitions.get(tag)

    def language_settings_for(self, name: str) -> LanguageSettings | None:
        return self._languages.get(name)


class JsonEndpointIconLookup(EndpointIconLookup):
    def __init__(self, icons: Mapping[str, str]) -> None:
        self._icons = MappingProxyType({str(key): str(value) for key, value in icons.items()})

    @classmethod
    def from_path(cls, path: Path) -> JsonEndpointIconLookup:
        if not path.exists():
            msg = f"Endpoint icon map not found: {path}"
            raise FileNotFoundError(msg)
        return cls(load_json(path))

    def icon_for(self, scheme: str) -> str | None:
        return self._icons.get(scheme)


def _as_mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
