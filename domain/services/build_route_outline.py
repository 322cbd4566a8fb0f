from __future__ import annotations

import logging

from lxml import etree

from domain.models import CID_ATTRIBUTE, RouteStepNode
from domain.ports.schema import SchemaLookup
from domain.services.classify_route_node import Step, classify
from domain.services.route_node_labels import (
    base_tooltip,
    outline_label,
    route_node_icon,
    safe_dom_id,
)
from domain.xml_nodes import child_elements, local_name

logger = logging.getLogger(__name__)


class RouteOutlineBuilder:
    def __init__(self, schema: SchemaLookup) -> None:
        self.schema = schema

    def build(self, parent_key: str, route: etree._Element) -> list[RouteStepNode]:
        """Builds the outline nodes for the step children of ``route``.

        The element is tagged with ``_cid = parent_key`` so diagram nodes can
        be matched back to outline nodes. Children the schema does not know as
        steps are left out.
        """
        route.set(CID_ATTRIBUTE, parent_key)
        nodes: list[RouteStepNode] = []
        for child in child_elements(route):
            node = self._build_child(parent_key, nodes, child)
            if node is not None:
                nodes.append(node)
        return nodes

    def build_route_node(self, key: str, route: etree._Element) -> RouteStepNode:
        tag = local_name(route)
        definition = self.schema.definition_for(tag)
        label = route.get("id") or (definition.title if definition else None) or tag
        tooltip = base_tooltip(definition, label) if definition else label
        return RouteStepNode(
            element=route,
            tag=tag,
            key=key,
            label=label,
            tooltip=tooltip,
            icon=route_node_icon(definition),
            children=self.build(key, route),
        )

    def _build_child(
        self,
        parent_key: str,
        siblings: list[RouteStepNode],
        element: etree._Element,
    ) -> RouteStepNode | None:
        tag = local_name(element)
        kind = classify(tag, self.schema)
        if not isinstance(kind, Step):
            logger.debug("Skipping <%s> under %s: not a step", tag, parent_key)
            return None

        node_label = outline_label(element, kind.definition, self.schema)
        key = unique_key(
            f"{parent_key}_{safe_dom_id(element.get('id') or tag)}",
            {sibling.key for sibling in siblings},
        )
        return RouteStepNode(
            element=element,
            tag=tag,
            key=key,
            label=node_label.label,
            tooltip=node_label.tooltip,
            icon=route_node_icon(kind.definition),
            children=self.build(key, element),
        )


def unique_key(base: str, taken: set[str]) -> str:
    counter = 1
    while f"{base}{counter}" in taken:
        counter += 1
    return f"{base}{counter}"
