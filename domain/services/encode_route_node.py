from __future__ import annotations

from collections.abc import Mapping

from lxml import etree

from domain.models import (
    ENDPOINT_NODE_TYPE,
    ENDPOINT_TAGS,
    INDENT,
    ROUTE_TAG,
    RouteStepNode,
    parse_boolean_value,
)
from domain.records import (
    ABSENT,
    EXPRESSION_ATTRIBUTE_KEY,
    EXPRESSION_KEY,
    LANGUAGE_ATTRIBUTE_KEY,
    LANGUAGE_KEY,
    GenericRecord,
    Node,
    NodeList,
    RecordValue,
    Scalar,
    is_expression_record,
    is_reserved_key,
    scalar_text,
)
from domain.services.classify_route_node import is_language
from domain.services.decode_route_node import ALIASED_PROPERTY_KEYS, RouteNodeDecoder
from domain.xml_nodes import (
    append_indented,
    child_elements,
    children_named,
    insert_indented,
    local_name,
    namespace_of,
    new_element,
    remove_indented,
)

ELEMENT_NAME_BY_KEY: dict[str, str] = {
    alias: name for name, alias in ALIASED_PROPERTY_KEYS.items()
}

EXPRESSION_RECORD_KEYS = frozenset(
    {LANGUAGE_KEY, EXPRESSION_KEY, LANGUAGE_ATTRIBUTE_KEY, EXPRESSION_ATTRIBUTE_KEY}
)


def step_type_id(tag: str) -> str:
    return ENDPOINT_NODE_TYPE if tag in ENDPOINT_TAGS else tag


def language_element_parts(record: GenericRecord) -> tuple[str, str, GenericRecord]:
    """Splits an expression record into the language element name, its text and its attributes.

    The expression goes back into an ``expression`` attribute when it was read
    from one, and a ``language`` attribute of the element itself is restored.
    """
    name = scalar_text(record[LANGUAGE_KEY])
    text = scalar_text(record.get(EXPRESSION_KEY))
    attributes: GenericRecord = {
        field: value for field, value in record.items() if field not in EXPRESSION_RECORD_KEYS
    }
    attributes[LANGUAGE_KEY] = record.get(LANGUAGE_ATTRIBUTE_KEY, ABSENT)
    if parse_boolean_value(scalar_text(record.get(EXPRESSION_ATTRIBUTE_KEY))):
        attributes[EXPRESSION_KEY] = Scalar(text)
        text = ""
    else:
        attributes[EXPRESSION_KEY] = ABSENT
    return name, text, attributes


class RouteNodeEncoder:
    def __init__(self, decoder: RouteNodeDecoder) -> None:
        self.decoder = decoder

    def encode(
        self,
        record: Mapping[str, RecordValue],
        element: etree._Element | None = None,
        *,
        tag: str | None = None,
        namespace: str | None = None,
        indent: str = INDENT,
    ) -> etree._Element:
        """Writes ``record`` onto ``element``, creating it from ``tag`` when missing.

        Keys are applied in record order. Scalars set attributes, absent or
        empty scalars remove them, nested records reuse the first child of the
        same name and lists replace every child of that name.
        """
        if element is None:
            if not tag:
                msg = "A tag is required to create a new element"
                raise ValueError(msg)
            element = new_element(tag, namespace)
        child_indent = indent + INDENT
        for key, value in record.items():
            self._encode_value(element, key, value, child_indent)
        self.decoder.invalidate(element)
        return element

    def _encode_value(
        self,
        element: etree._Element,
        key: str,
        value: RecordValue,
        child_indent: str,
    ) -> None:
        if isinstance(value, NodeList):
            existing = children_named(element, ELEMENT_NAME_BY_KEY.get(key, key))
            # Replacement items take the place of the first child they replace.
            position = element.index(existing[0]) if existing else len(element)
            for child in existing:
                remove_indented(element, child)
            for offset, item in enumerate(value.records):
                self._encode_node(element, key, item, child_indent, position + offset)
        elif isinstance(value, Node):
            self._encode_node(element, key, value.record, child_indent)
        elif isinstance(value, Scalar) and value.text:
            if not is_reserved_key(key):
                element.set(key, value.text)
        elif key in element.attrib:
            del element.attrib[key]

    def _encode_node(
        self,
        parent: etree._Element,
        key: str,
        record: GenericRecord,
        child_indent: str,
        insert_at: int | None = None,
    ) -> None:
        name = ELEMENT_NAME_BY_KEY.get(key, key)
        text: str | None = None
        if key == EXPRESSION_KEY and scalar_text(record.get(LANGUAGE_KEY)):
            name, text, record = language_element_parts(record)
            self._remove_other_languages(parent, name)
        elif is_expression_record(record):
            # The decoder unwraps expressions held by plain properties; wrap them back.
            record = {EXPRESSION_KEY: Node(record)}

        existing = children_named(parent, name)
        if insert_at is not None:
            child = new_element(name, namespace_of(parent))
            insert_indented(parent, insert_at, child, child_indent)
        elif not existing:
            child = new_element(name, namespace_of(parent))
            append_indented(parent, child, child_indent)
        else:
            child = existing[0]
        if text is not None:
            child.text = text or None
        self.encode(record, child, indent=child_indent)

    def _remove_other_languages(self, parent: etree._Element, language: str) -> None:
        for child in child_elements(parent):
            name = local_name(child)
            if name != language and is_language(name, self.decoder.schema):
                remove_indented(parent, child)

    def build_route_xml(
        self,
        node: RouteStepNode,
        element: etree._Element | None = None,
        indent: str = INDENT,
    ) -> etree._Element:
        """Rebuilds the XML of ``node`` and its step children from their records.

        Endpoints get their role from their position: the first endpoint
        directly inside a route is the ``from``, every other one is a ``to``.
        """
        if element is None:
            element = new_element(node.tag, namespace_of(node.element))
            self.encode(self._record_for(node), element, indent=indent)
        namespace = namespace_of(element)
        has_source = step_type_id(node.tag) != ROUTE_TAG
        child_indent = indent + INDENT
        for child in node.children:
            name = step_type_id(child.tag)
            record = self._record_for(child)
            text: str | None = None
            if name == ENDPOINT_NODE_TYPE:
                if has_source:
                    name = "to"
                else:
                    name = "from"
                    has_source = True
            elif name == EXPRESSION_KEY and scalar_text(record.get(LANGUAGE_KEY)):
                name, text, record = language_element_parts(record)

            child_element = new_element(name, namespace)
            append_indented(element, child_element, child_indent)
            if text:
                child_element.text = text
            self.encode(record, child_element, indent=child_indent)
            self.build_route_xml(child, child_element, child_indent)
        return element

    def _record_for(self, node: RouteStepNode) -> GenericRecord:
        if node.record is not None:
            return node.record
        return self.decoder.decode(node.element)
