from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from domain.models import LanguageSettings, StepDefinition
from domain.ports.schema import SchemaLookup

LITERAL_EXPRESSION_TAG = "expression"


@dataclass(frozen=True)
class Step:
    definition: StepDefinition


@dataclass(frozen=True)
class Expression:
    settings: LanguageSettings | None = None


@dataclass(frozen=True)
class Plain:
    pass


NodeClassification = Union[Step, Expression, Plain]


def classify(tag: str, schema: SchemaLookup) -> NodeClassification:
    """Decides what a route element means.

    Steps are known to the schema as processing-pipeline definitions,
    expressions are language-tagged text (or the literal ``expression`` tag)
    and anything else is a plain nested property. The decoder, the outline
    and the diagram all go through this function so they agree on which
    elements are steps.
    """
    definition = schema.definition_for(tag)
    if definition is not None:
        return Step(definition)
    settings = schema.language_settings_for(tag)
    if settings is not None or tag == LITERAL_EXPRESSION_TAG:
        return Expression(settings)
    return Plain()


def is_language(tag: str, schema: SchemaLookup) -> bool:
    return schema.language_settings_for(tag) is not None or tag == LITERAL_EXPRESSION_TAG
