from __future__ import annotations

import logging
from dataclasses import dataclass

from lxml import etree

from domain.models import (
    CHOICE_TAG,
    CID_ATTRIBUTE,
    ENDPOINT_TAGS,
    ROUTE_TAG,
    DiagramLink,
    DiagramNode,
    DiagramOptions,
    RouteDiagram,
    StepDefinition,
)
from domain.ports.schema import EndpointIconLookup, SchemaLookup
from domain.services.classify_route_node import Expression, Step, classify
from domain.services.route_node_labels import (
    base_tooltip,
    language_label_suffix,
    route_node_icon,
    route_node_uri,
    strip_uri_query,
)
from domain.xml_nodes import child_elements, iter_routes, local_name, text_content

logger = logging.getLogger(__name__)

SOURCE_TAG = "from"


@dataclass(frozen=True)
class TraversalContext:
    """Where the walk currently is: the node to link from and the layout origin."""

    parent_id: int | None
    parent_x: float
    parent_y: float
    parent_tag: str
    parent_node: DiagramNode | None = None
    route_id: str | None = None


@dataclass(frozen=True)
class SubtreeExtent:
    """Ids waiting for a successor and the furthest coordinates a subtree reached."""

    pending: list[int]
    max_x: float
    max_y: float


class RouteDiagramBuilder:
    def __init__(
        self,
        schema: SchemaLookup,
        icons: EndpointIconLookup | None = None,
        options: DiagramOptions | None = None,
    ) -> None:
        self.schema = schema
        self.icons = icons
        self.options = options or DiagramOptions()

    def build(
        self,
        root: etree._Element,
        selected_route_id: str | None = None,
    ) -> RouteDiagram:
        diagram = RouteDiagram()
        routes = [
            route for route in iter_routes(root) if _route_selected(route, selected_route_id)
        ]
        if not routes:
            return diagram

        route_delta = self.options.width / len(routes)
        route_x = 0.0
        for route in routes:
            context = TraversalContext(
                parent_id=None,
                parent_x=route_x,
                parent_y=0.0,
                parent_tag=ROUTE_TAG,
                route_id=route.get("id"),
            )
            self.add_children(diagram, route, context)
            route_x += route_delta
        return diagram

    def add_children(
        self,
        diagram: RouteDiagram,
        parent: etree._Element,
        context: TraversalContext,
    ) -> SubtreeExtent:
        """Adds the steps below ``parent`` and returns the ids still waiting for a successor.

        Branches of a ``choice`` all link from the choice node and fan out
        horizontally; whatever follows the choice links from the last node of
        every branch. Each sibling is placed past the extent of the subtree
        before it, so no two nodes share a position.
        """
        delta = self.options.layout_delta
        x = context.parent_x
        y = context.parent_y + delta
        max_x = context.parent_x
        max_y = context.parent_y
        parent_id = context.parent_id
        route_id = context.route_id
        pending: list[int] = []

        for element in child_elements(parent):
            node_id = len(diagram.nodes)
            tag = local_name(element)
            # The route source acts as the parent of the steps that follow it.
            if tag == SOURCE_TAG and parent_id is None:
                parent_id = node_id
            elif tag == SOURCE_TAG and context.parent_tag == ROUTE_TAG:
                logger.debug("Route already has a source, <from> #%d is not its anchor", node_id)

            kind = classify(tag, self.schema)
            node: DiagramNode | None = None
            if isinstance(kind, Step):
                node = self._create_node(element, tag, kind.definition, node_id, x, y)
                if route_id:
                    node.rid = route_id
                    diagram.route_nodes[route_id] = node
                    route_id = None
                diagram.nodes.append(node)
                diagram.nodes_by_cid[node.cid] = node
                if parent_id is not None and parent_id != node_id:
                    if not pending or context.parent_tag == CHOICE_TAG:
                        diagram.links.append(DiagramLink(source=parent_id, target=node_id))
                    else:
                        diagram.links.extend(
                            DiagramLink(source=source, target=node_id) for source in pending
                        )
                        pending = []
            elif isinstance(kind, Expression) and context.parent_node is not None:
                self._fold_expression(context.parent_node, element, tag, kind)

            child_context = TraversalContext(
                parent_id=node_id if node is not None else parent_id,
                parent_x=x,
                parent_y=y,
                parent_tag=tag,
                parent_node=node,
            )
            extent = self.add_children(diagram, element, child_context)
            max_x = max(max_x, x, extent.max_x)
            max_y = max(max_y, y, extent.max_y)
            if context.parent_tag == CHOICE_TAG:
                pending = pending + extent.pending
                x = max(x, extent.max_x) + delta
            elif tag == CHOICE_TAG:
                pending = extent.pending
                y = max(y, extent.max_y) + delta
            else:
                pending = [len(diagram.nodes) - 1] if diagram.nodes else []
                y = max(y, extent.max_y) + delta
        return SubtreeExtent(pending=pending, max_x=max_x, max_y=max_y)

    def _create_node(
        self,
        element: etree._Element,
        tag: str,
        definition: StepDefinition,
        node_id: int,
        x: float,
        y: float,
    ) -> DiagramNode:
        uri = route_node_uri(element)
        label = definition.title or tag
        if uri:
            label = f"{label} {strip_uri_query(uri)}"
        tooltip = base_tooltip(definition, label)
        if uri:
            tooltip = f"{tooltip} {uri}"

        element_id = element.get("id")
        label_summary = label
        if element_id:
            custom_id = element.get("customId")
            if self.options.ignore_id_for_label or not custom_id or custom_id == "false":
                label_summary = f"id: {element_id}"
            else:
                label = element_id

        limit = self.options.maximum_label_width
        if len(label) > limit:
            label_summary = f"{label}\n\n{label_summary}"
            label = label[:limit] + ".."

        return DiagramNode(
            id=node_id,
            type=tag,
            label=label,
            tooltip=tooltip,
            label_summary=label_summary,
            x=x,
            y=y,
            cid=element.get(CID_ATTRIBUTE) or element_id or f"{tag}{node_id + 1}",
            icon=self._node_icon(tag, uri, definition),
            uri=uri,
            element_id=element_id,
        )

    def _node_icon(self, tag: str, uri: str | None, definition: StepDefinition) -> str | None:
        icon = route_node_icon(definition)
        if tag not in ENDPOINT_TAGS or not uri or self.icons is None:
            return icon
        scheme_end = uri.find(":")
        if scheme_end <= 0:
            return icon
        return self.icons.icon_for(uri[:scheme_end]) or icon

    def _fold_expression(
        self,
        parent: DiagramNode,
        element: etree._Element,
        tag: str,
        kind: Expression,
    ) -> None:
        name = (kind.settings.name if kind.settings else None) or tag
        text = text_content(element)
        if text:
            parent.tooltip = f"{parent.label} {name} {text}"
            parent.label += ": " + language_label_suffix(element, text, True)
        else:
            parent.label += ": " + language_label_suffix(element, name, False)


def _route_selected(route: etree._Element, selected_route_id: str | None) -> bool:
    route_id = route.get("id")
    return not selected_route_id or not route_id or selected_route_id == route_id


def is_selected_node(node: DiagramNode, selection: str) -> bool:
    """Tells whether ``node`` is the one a ``selection`` id points at.

    Sources match on their route id; other nodes prefer their element id over
    the correlation id, which may be a generated fallback.
    """
    if node.type == SOURCE_TAG:
        return selection == node.rid
    if node.element_id:
        return selection == node.element_id
    if node.cid:
        return selection == node.cid
    return selection == node.rid
