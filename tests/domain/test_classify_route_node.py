from __future__ import annotations

from adapters.schema.json_schema_lookup import JsonSchemaLookup
from domain.services.classify_route_node import Expression, Plain, Step, classify, is_language


def test_schema_steps_classify_as_steps(schema: JsonSchemaLookup) -> None:
    kind = classify("filter", schema)

    assert isinstance(kind, Step)
    assert kind.definition.title == "Filter"


def test_languages_classify_as_expressions(schema: JsonSchemaLookup) -> None:
    kind = classify("simple", schema)

    assert isinstance(kind, Expression)
    assert kind.settings is not None
    assert kind.settings.name == "Simple"


def test_literal_expression_tag_is_an_expression_without_settings(
    schema: JsonSchemaLookup,
) -> None:
    kind = classify("expression", schema)

    assert isinstance(kind, Expression)
    assert kind.settings is None
    assert is_language("expression", schema)


def test_unknown_tags_are_plain(schema: JsonSchemaLookup) -> None:
    assert isinstance(classify("completionSize", schema), Plain)
    assert isinstance(classify("description", schema), Plain)
    assert not is_language("description", schema)


def test_step_wins_over_language() -> None:
    schema = JsonSchemaLookup.from_dict(
        {
            "definitions": {"method": {"title": "Method Step"}},
            "languages": {"method": {"name": "Method"}},
        }
    )

    assert isinstance(classify("method", schema), Step)
