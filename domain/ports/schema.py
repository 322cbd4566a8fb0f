from __future__ import annotations

from typing import Protocol

from domain.models import LanguageSettings, StepDefinition


class SchemaLookup(Protocol):
    def definition_for(self, tag: str) -> StepDefinition | None: ...

    def language_settings_for(self, name: str) -> LanguageSettings | None: ...


class EndpointIconLookup(Protocol):
    def icon_for(self, scheme: str) -> str | None: ...
