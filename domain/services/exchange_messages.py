from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lxml import etree

from domain.xml_nodes import children_named, local_name, text_content

EXCHANGE_TAG = "exchange"
_ID_HEADER_SUFFIXES = ("MessageID", "ID", "Path", "Name")
_JAVA_LANG_PREFIX = "java.lang"


@dataclass
class ExchangeMessage:
    uid: str
    timestamp: str
    id: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    header_types: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    body_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "uid": self.uid,
            "timestamp": self.timestamp,
            "headers": dict(self.headers),
            "header_types": dict(self.header_types),
            "body": self.body,
            "body_type": self.body_type,
        }


def humanize_java_type(type_name: str | None) -> str:
    if not type_name:
        return ""
    if type_name.startswith(_JAVA_LANG_PREFIX):
        return type_name[len(_JAVA_LANG_PREFIX) + 1 :]
    return type_name


def create_message_from_xml(exchange: etree._Element) -> ExchangeMessage:
    """Reads a traced exchange into a message.

    Missing ``uid``/``timestamp`` become empty strings, a missing ``message``
    element means the headers and body sit directly on the exchange, and a
    missing ``body`` leaves the body fields unset.
    """
    message = ExchangeMessage(
        uid=_child_text(exchange, "uid"),
        timestamp=_child_text(exchange, "timestamp"),
    )
    messages = children_named(exchange, "message")
    message_element = messages[0] if messages else exchange

    for header in message_element.iter("{*}header"):
        key = header.get("key")
        if not key:
            continue
        value = text_content(header)
        type_name = header.get("type")
        if value:
            message.headers[key] = value
        if type_name:
            message.header_types[key] = type_name

    message.id = _resolve_message_id(message.headers)

    bodies = children_named(message_element, "body")
    if bodies:
        body = bodies[0]
        message.body = text_content(body)
        message.body_type = humanize_java_type(body.get("type"))
    return message


def _resolve_message_id(headers: dict[str, str]) -> str | None:
    breadcrumb = headers.get("breadcrumbId")
    if breadcrumb:
        return breadcrumb
    for suffix in _ID_HEADER_SUFFIXES:
        for key, value in headers.items():
            if key.endswith(suffix):
                return value
    return next(iter(headers.values()), None)


def _child_text(element: etree._Element, name: str) -> str:
    matches = children_named(element, name)
    return text_content(matches[0]) if matches else ""


def create_messages_from_xml(root: etree._Element) -> list[ExchangeMessage]:
    """Reads every traced exchange in a document; the root may be an exchange itself."""
    if local_name(root) == EXCHANGE_TAG:
        return [create_message_from_xml(root)]
    return [create_message_from_xml(exchange) for exchange in root.iter(f"{{*}}{EXCHANGE_TAG}")]
