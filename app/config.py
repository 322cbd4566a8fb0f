from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import (
    DEFAULT_DIAGRAM_WIDTH,
    DEFAULT_MAXIMUM_LABEL_WIDTH,
    LAYOUT_DELTA,
    DiagramOptions,
    parse_boolean_value,
)

DEFAULT_CONFIG_PATH = Path("config/routes/app.yaml")


class RoutesSettings(BaseModel):
    title: str = "Route Diagrams"
    routes_dir: Path = Path("data/routes")
    schema_path: Path = Path("data/schema/route-model.json")
    endpoint_icons_path: Path | None = Path("data/schema/endpoint-icons.json")


class DiagramSettings(BaseModel):
    maximum_label_width: int = Field(default=DEFAULT_MAXIMUM_LABEL_WIDTH, gt=0)
    ignore_id_for_label: bool = False
    width: float = Field(default=DEFAULT_DIAGRAM_WIDTH, gt=0)
    layout_delta: float = Field(default=LAYOUT_DELTA, gt=0)

    @field_validator("maximum_label_width", mode="before")
    @classmethod
    def default_blank_label_width(cls, value: object) -> object:
        if value is None or value == "" or value == 0 or value == "0":
            return DEFAULT_MAXIMUM_LABEL_WIDTH
        return value

    @field_validator("ignore_id_for_label", mode="before")
    @classmethod
    def normalize_ignore_id(cls, value: object) -> bool:
        return parse_boolean_value(value)

    def to_options(self) -> DiagramOptions:
        return DiagramOptions(
            maximum_label_width=self.maximum_label_width,
            ignore_id_for_label=self.ignore_id_for_label,
            layout_delta=self.layout_delta,
            width=self.width,
        )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROUTES_", env_nested_delimiter="__")

    routes: RoutesSettings = RoutesSettings()
    diagram: DiagramSettings = DiagramSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("ROUTES_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
