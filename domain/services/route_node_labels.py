from __future__ import annotations

import re
from dataclasses import dataclass

from lxml import etree

from domain.models import DEFAULT_STEP_ICON, ICON_BASE_PATH, StepDefinition
from domain.ports.schema import SchemaLookup
from domain.services.classify_route_node import is_language
from domain.xml_nodes import child_elements, local_name, text_content

_UNSAFE_DOM_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True)
class NodeLabel:
    label: str
    tooltip: str


def route_node_uri(element: etree._Element | None) -> str | None:
    if element is None:
        return None
    uri = element.get("uri")
    if uri:
        return uri
    ref = element.get("ref")
    if not ref:
        return None
    method = element.get("method")
    if method:
        return f"{ref}.{method}()"
    return f"ref:{ref}"


def strip_uri_query(uri: str) -> str:
    return uri.split("?", 1)[0]


def route_node_icon(definition: StepDefinition | None) -> str | None:
    if definition is None:
        return None
    return ICON_BASE_PATH + (definition.icon or DEFAULT_STEP_ICON)


def base_tooltip(definition: StepDefinition, fallback: str) -> str:
    return definition.tooltip or definition.description or fallback


def safe_dom_id(text: str) -> str:
    return _UNSAFE_DOM_ID_CHARS.sub("_", text)


def outline_label(
    element: etree._Element,
    definition: StepDefinition,
    schema: SchemaLookup,
) -> NodeLabel:
    """Labels a step for the outline.

    An explicit ``id`` wins. Otherwise the endpoint URI (without its query)
    is used, and failing that the schema title followed by the text of a
    leading expression child.
    """
    tag = local_name(element)
    label = definition.title or tag
    tooltip = base_tooltip(definition, label)
    element_id = element.get("id")
    if element_id:
        return NodeLabel(label=element_id, tooltip=tooltip)

    uri = route_node_uri(element)
    if uri:
        return NodeLabel(label=strip_uri_query(uri), tooltip=f"{tooltip} {uri}")

    children = child_elements(element)
    if children:
        child = children[0]
        child_name = local_name(child)
        expression = ""
        if is_language(child_name, schema):
            expression = text_content(child) or child.get("expression") or ""
        if expression:
            label = f"{label} {expression}"
            tooltip = f"{tooltip} {child_name} expression"
    return NodeLabel(label=label, tooltip=tooltip)


def language_label_suffix(element: etree._Element, label: str, has_text: bool) -> str:
    if local_name(element) != "method":
        return label
    if not has_text:
        for attribute in ("bean", "ref", "beanType"):
            value = element.get(attribute)
            if value:
                label = f"{label} {value}"
                break
    method = element.get("method")
    if method:
        label = f"{label} {method}"
    return label
