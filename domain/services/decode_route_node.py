from __future__ import annotations

import logging

from lxml import etree

from domain.models import CONTAINER_TAGS
from domain.ports.schema import SchemaLookup
from domain.records import (
    EXPRESSION_ATTRIBUTE_KEY,
    EXPRESSION_KEY,
    LANGUAGE_ATTRIBUTE_KEY,
    LANGUAGE_KEY,
    GenericRecord,
    Node,
    NodeList,
    RecordValue,
    Scalar,
    is_reserved_key,
)
from domain.services.classify_route_node import Expression, Plain, classify
from domain.xml_nodes import child_elements, local_name, text_content

logger = logging.getLogger(__name__)

# Property names that are both an attribute and an expression element in the dialect.
ALIASED_PROPERTY_KEYS: dict[str, str] = {
    "completionSize": "completionSizeExpression",
    "completionTimeout": "completionTimeoutExpression",
}


class RouteNodeDecoder:
    """Converts route XML elements into generic records.

    Records are cached per element; call :meth:`invalidate` after mutating an
    element so the next :meth:`decode` reads the XML again.
    """

    def __init__(self, schema: SchemaLookup) -> None:
        self.schema = schema
        self._cache: dict[etree._Element, GenericRecord] = {}

    def decode(self, element: etree._Element) -> GenericRecord:
        cached = self._cache.get(element)
        if cached is None:
            cached = self.decode_into(element, {})
            self._cache[element] = cached
        return cached

    def invalidate(self, element: etree._Element | None = None) -> None:
        if element is None:
            self._cache.clear()
            return
        self._cache.pop(element, None)

    def decode_into(self, element: etree._Element, record: GenericRecord) -> GenericRecord:
        for name, value in element.attrib.items():
            if not is_reserved_key(name):
                record[name] = Scalar(value)

        if local_name(element) in CONTAINER_TAGS:
            return record

        for child in child_elements(element):
            name = local_name(child)
            kind = classify(name, self.schema)
            if isinstance(kind, Expression):
                record[EXPRESSION_KEY] = Node(self._decode_expression(child, name))
            elif isinstance(kind, Plain):
                nested = self.decode_into(child, {})
                inner = nested.get(EXPRESSION_KEY)
                if isinstance(inner, Node):
                    nested = inner.record
                key = ALIASED_PROPERTY_KEYS.get(name, name)
                _store_nested(record, key, nested)
            else:
                logger.debug("Nested step <%s> is left to the outline", name)
        return record

    def _decode_expression(self, element: etree._Element, language: str) -> GenericRecord:
        record: GenericRecord = {}
        for name, value in element.attrib.items():
            if name == LANGUAGE_KEY:
                record[LANGUAGE_ATTRIBUTE_KEY] = Scalar(value)
            elif name != EXPRESSION_KEY and not is_reserved_key(name):
                record[name] = Scalar(value)
        text = text_content(element)
        if not text and element.get(EXPRESSION_KEY) is not None:
            text = element.get(EXPRESSION_KEY, "")
            record[EXPRESSION_ATTRIBUTE_KEY] = Scalar("true")
        record[LANGUAGE_KEY] = Scalar(language)
        record[EXPRESSION_KEY] = Scalar(text)
        return record


def _store_nested(record: GenericRecord, key: str, nested: GenericRecord) -> None:
    existing: RecordValue | None = record.get(key)
    if isinstance(existing, Node):
        record[key] = NodeList([existing.record, nested])
    elif isinstance(existing, NodeList):
        existing.records.append(nested)
    else:
        record[key] = Node(nested)
