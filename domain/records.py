from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

RESERVED_KEY_PREFIX = "_"
EXPRESSION_KEY = "expression"
LANGUAGE_KEY = "language"
# An expression element may carry its own `language` attribute, or hold its
# text in an `expression` attribute; both would clash with the keys above.
LANGUAGE_ATTRIBUTE_KEY = "languageAttribute"
EXPRESSION_ATTRIBUTE_KEY = "expressionAttribute"


@dataclass(frozen=True)
class Absent:
    pass


@dataclass(frozen=True)
class Scalar:
    text: str


@dataclass(frozen=True)
class Node:
    record: GenericRecord


@dataclass(frozen=True)
class NodeList:
    records: list[GenericRecord] = field(default_factory=list)


ABSENT = Absent()

RecordValue = Union[Absent, Scalar, Node, NodeList]
GenericRecord = dict[str, RecordValue]


def is_reserved_key(key: str) -> bool:
    return key.startswith(RESERVED_KEY_PREFIX)


def scalar_text(value: RecordValue | None) -> str:
    if isinstance(value, Scalar):
        return value.text
    return ""


def expression_record(language: str, expression: str) -> GenericRecord:
    return {LANGUAGE_KEY: Scalar(language), EXPRESSION_KEY: Scalar(expression)}


def is_expression_record(record: Mapping[str, RecordValue]) -> bool:
    return bool(scalar_text(record.get(LANGUAGE_KEY))) and EXPRESSION_KEY in record


def record_from_json(payload: Mapping[str, Any]) -> GenericRecord:
    """Builds a record from plain JSON data.

    ``None``, ``False`` and ``""`` become ``Absent``; other scalars are kept
    as their string form. Nested objects become ``Node`` values and lists of
    objects become ``NodeList`` values.
    """
    record: GenericRecord = {}
    for key, value in payload.items():
        record[str(key)] = _value_from_json(value)
    return record


def _value_from_json(value: Any) -> RecordValue:
    if value is None or value is False or value == "":
        return ABSENT
    if isinstance(value, Mapping):
        return Node(record_from_json(value))
    if isinstance(value, (list, tuple)):
        items = [item for item in value if isinstance(item, Mapping)]
        if len(items) != len(value):
            msg = "Record lists may only contain objects"
            raise ValueError(msg)
        return NodeList([record_from_json(item) for item in items])
    if value is True:
        return Scalar("true")
    return Scalar(str(value))


def record_to_json(record: Mapping[str, RecordValue]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in record.items():
        payload[key] = _value_to_json(value)
    return payload


def _value_to_json(value: RecordValue) -> Any:
    if isinstance(value, Scalar):
        return value.text
    if isinstance(value, Node):
        return record_to_json(value.record)
    if isinstance(value, NodeList):
        return [record_to_json(item) for item in value.records]
    return None
