from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from lxml import etree
from pydantic import BaseModel, ConfigDict

from domain.records import GenericRecord

DEFAULT_MAXIMUM_LABEL_WIDTH = 34
DEFAULT_DIAGRAM_WIDTH = 800.0
LAYOUT_DELTA = 150.0
INDENT = "  "

CID_ATTRIBUTE = "_cid"
CONTAINER_TAGS = frozenset({"route", "routes", "camelContext", "rests"})
ENDPOINT_TAGS = frozenset({"from", "to"})
ENDPOINT_NODE_TYPE = "endpoint"
CHOICE_TAG = "choice"
ROUTE_TAG = "route"

ICON_BASE_PATH = "img/icons/camel/"
DEFAULT_STEP_ICON = "generic24.png"


class StepDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str | None = None
    tooltip: str | None = None
    description: str | None = None
    icon: str | None = None


class LanguageSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str | None = None


@dataclass(eq=False)
class RouteStepNode:
    element: etree._Element
    tag: str
    key: str
    label: str
    tooltip: str
    icon: str | None = None
    children: list[RouteStepNode] = field(default_factory=list)
    record: GenericRecord | None = None

    def iter_nodes(self) -> Iterator[RouteStepNode]:
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "tag": self.tag,
            "label": self.label,
            "tooltip": self.tooltip,
            "icon": self.icon,
            "children": [child.to_dict() for child in self.children],
        }


def find_step(nodes: list[RouteStepNode], key: str) -> RouteStepNode | None:
    for root in nodes:
        for node in root.iter_nodes():
            if node.key == key:
                return node
    return None


@dataclass
class DiagramNode:
    id: int
    type: str
    label: str
    tooltip: str
    label_summary: str
    x: float
    y: float
    cid: str
    icon: str | None = None
    uri: str | None = None
    element_id: str | None = None
    rid: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "label": self.label,
            "tooltip": self.tooltip,
            "label_summary": self.label_summary,
            "x": self.x,
            "y": self.y,
            "cid": self.cid,
            "icon": self.icon,
            "uri": self.uri,
            "element_id": self.element_id,
            "rid": self.rid,
        }


@dataclass(frozen=True)
class DiagramLink:
    source: int
    target: int
    value: int = 1

    def to_dict(self) -> dict[str, int]:
        return {"source": self.source, "target": self.target, "value": self.value}


@dataclass
class RouteDiagram:
    nodes: list[DiagramNode] = field(default_factory=list)
    links: list[DiagramLink] = field(default_factory=list)
    route_nodes: dict[str, DiagramNode] = field(default_factory=dict)
    nodes_by_cid: dict[str, DiagramNode] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [link.to_dict() for link in self.links],
            "route_nodes": {route_id: node.id for route_id, node in self.route_nodes.items()},
            "meta": {
                "node_count": len(self.nodes),
                "link_count": len(self.links),
            },
        }


@dataclass(frozen=True)
class DiagramOptions:
    maximum_label_width: int = DEFAULT_MAXIMUM_LABEL_WIDTH
    ignore_id_for_label: bool = False
    layout_delta: float = LAYOUT_DELTA
    width: float = DEFAULT_DIAGRAM_WIDTH

    @classmethod
    def from_flat(cls, values: Mapping[str, Any]) -> DiagramOptions:
        """Reads the options from a flat key-value store such as browser local storage."""
        return cls(
            maximum_label_width=parse_positive_int(
                values.get("camelMaximumLabelWidth"), DEFAULT_MAXIMUM_LABEL_WIDTH
            ),
            ignore_id_for_label=parse_boolean_value(values.get("camelIgnoreIdForLabel")),
        )


def parse_boolean_value(value: object, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes"}


def parse_positive_int(value: object, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default
