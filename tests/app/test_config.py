from __future__ import annotations

from pathlib import Path

import pytest

from app.config import DiagramSettings, load_settings


def test_yaml_values_are_loaded(tmp_path: Path) -> None:
    config = tmp_path / "app.yaml"
    config.write_text(
        "routes:\n"
        "  title: Integration Routes\n"
        "  routes_dir: /srv/routes\n"
        "diagram:\n"
        "  maximum_label_width: 0\n"
        "  ignore_id_for_label: 'yes'\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.routes.title == "Integration Routes"
    assert settings.routes.routes_dir == Path("/srv/routes")
    assert settings.diagram.maximum_label_width == 34
    assert settings.diagram.ignore_id_for_label is True


def test_environment_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "app.yaml"
    config.write_text("diagram:\n  width: 900\n", encoding="utf-8")
    monkeypatch.setenv("ROUTES_CONFIG_PATH", str(config))
    monkeypatch.setenv("ROUTES_DIAGRAM__LAYOUT_DELTA", "120")

    settings = load_settings()

    assert settings.diagram.width == 900.0
    assert settings.diagram.layout_delta == 120.0


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_diagram_settings_build_options() -> None:
    options = DiagramSettings(maximum_label_width="", ignore_id_for_label="1", width=500).to_options()

    assert options.maximum_label_width == 34
    assert options.ignore_id_for_label is True
    assert options.width == 500.0
    assert options.layout_delta == 150.0
