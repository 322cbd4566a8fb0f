from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from app.cli import app

runner = CliRunner()


def test_outline_prints_step_keys(routes_dir: Path, schema_path: Path) -> None:
    result = runner.invoke(app, ["outline", str(routes_dir / "orders.xml"), "--schema", str(schema_path)])

    assert result.exit_code == 0
    assert "orders_orders1_from1" in result.output
    assert "orders_priority1_bean1" in result.output


def test_validate_counts_routes(routes_dir: Path, schema_path: Path) -> None:
    result = runner.invoke(app, ["validate", str(routes_dir / "orders.xml"), "--schema", str(schema_path)])

    assert result.exit_code == 0
    assert "Valid route document" in result.output


def test_validate_rejects_documents_without_routes(tmp_path: Path, schema_path: Path) -> None:
    path = tmp_path / "empty.xml"
    path.write_text("<routes/>", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path), "--schema", str(schema_path)])

    assert result.exit_code == 1
    assert "No routes found" in result.output


def test_malformed_documents_exit_with_error(tmp_path: Path, schema_path: Path) -> None:
    path = tmp_path / "broken.xml"
    path.write_text("<routes>", encoding="utf-8")

    result = runner.invoke(app, ["outline", str(path), "--schema", str(schema_path)])

    assert result.exit_code == 1
    assert "Cannot read route document" in result.output


def test_missing_schema_exits_with_error(routes_dir: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["outline", str(routes_dir / "orders.xml"), "--schema", str(tmp_path / "missing.json")],
    )

    assert result.exit_code == 1
    assert "Cannot load route model" in result.output


def test_diagram_writes_json(
    routes_dir: Path, schema_path: Path, icons_path: Path, tmp_path: Path
) -> None:
    output = tmp_path / "out" / "orders.json"

    result = runner.invoke(
        app,
        [
            "diagram",
            str(routes_dir / "orders.xml"),
            "--route-id",
            "priority",
            "--output",
            str(output),
            "--schema",
            str(schema_path),
            "--icons",
            str(icons_path),
        ],
    )

    assert result.exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["meta"] == {"node_count": 4, "link_count": 3}
    assert payload["nodes"][0]["icon"] == "img/icons/camel/channel24.png"


def test_decode_prints_the_record(routes_dir: Path, schema_path: Path) -> None:
    result = runner.invoke(
        app,
        ["decode", str(routes_dir / "orders.xml"), "orders_priority1_bean1", "--schema", str(schema_path)],
    )

    assert result.exit_code == 0
    assert json.loads(result.output) == {"ref": "orderService", "method": "expedite"}


def test_decode_unknown_step(routes_dir: Path, schema_path: Path) -> None:
    result = runner.invoke(
        app,
        ["decode", str(routes_dir / "orders.xml"), "orders_nope1", "--schema", str(schema_path)],
    )

    assert result.exit_code == 1
    assert "Step not found" in result.output


def test_encode_updates_the_document(routes_dir: Path, schema_path: Path, tmp_path: Path) -> None:
    output = tmp_path / "edited.xml"

    result = runner.invoke(
        app,
        [
            "encode",
            str(routes_dir / "orders.xml"),
            "orders_priority1_notify1",
            '{"uri": "http://notify.example.com/v2"}',
            "--output",
            str(output),
            "--schema",
            str(schema_path),
        ],
    )

    assert result.exit_code == 0
    content = output.read_text(encoding="utf-8")
    assert 'uri="http://notify.example.com/v2"' in content
    assert "_cid" not in content
    assert "http://notify.example.com/orders" in (routes_dir / "orders.xml").read_text(
        encoding="utf-8"
    )


def test_encode_rejects_non_object_records(routes_dir: Path, schema_path: Path) -> None:
    result = runner.invoke(
        app,
        ["encode", str(routes_dir / "orders.xml"), "orders_priority1_notify1", "[1, 2]", "--schema", str(schema_path)],
    )

    assert result.exit_code == 1
    assert "Invalid record" in result.output


def test_messages_prints_traced_exchanges(tmp_path: Path) -> None:
    path = tmp_path / "trace.xml"
    path.write_text(
        "<exchange><uid>ID-host-1</uid><message>"
        '<header key="breadcrumbId">crumb-1</header>'
        '<body type="java.lang.Integer">42</body>'
        "</message></exchange>",
        encoding="utf-8",
    )
    output = tmp_path / "messages.json"

    result = runner.invoke(app, ["messages", str(path), "--output", str(output)])

    assert result.exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["items"][0]["id"] == "crumb-1"
    assert payload["items"][0]["body_type"] == "Integer"


def test_messages_requires_an_exchange(tmp_path: Path) -> None:
    path = tmp_path / "trace.xml"
    path.write_text("<backlogTracerEventMessages/>", encoding="utf-8")

    result = runner.invoke(app, ["messages", str(path)])

    assert result.exit_code == 1
    assert "No exchanges found" in result.output
