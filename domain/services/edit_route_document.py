from __future__ import annotations

from collections.abc import Mapping

from lxml import etree

from domain.models import CID_ATTRIBUTE, RouteStepNode, find_step
from domain.records import GenericRecord, RecordValue
from domain.services.build_route_outline import RouteOutlineBuilder
from domain.services.decode_route_node import RouteNodeDecoder
from domain.services.encode_route_node import RouteNodeEncoder
from domain.services.route_node_labels import safe_dom_id
from domain.xml_nodes import element_indent


class RouteDocumentEditor:
    """Reads and edits the steps of a whole route document by outline key."""

    def __init__(
        self,
        outline: RouteOutlineBuilder,
        decoder: RouteNodeDecoder,
        encoder: RouteNodeEncoder,
    ) -> None:
        self.outline_builder = outline
        self.decoder = decoder
        self.encoder = encoder

    def outline(self, root: etree._Element, document_name: str) -> list[RouteStepNode]:
        return self.outline_builder.build(safe_dom_id(document_name), root)

    def read_step(
        self,
        root: etree._Element,
        document_name: str,
        key: str,
    ) -> GenericRecord | None:
        node = find_step(self.outline(root, document_name), key)
        if node is None:
            return None
        return self.decoder.decode(node.element)

    def update_step(
        self,
        root: etree._Element,
        document_name: str,
        key: str,
        record: Mapping[str, RecordValue],
    ) -> GenericRecord | None:
        node = find_step(self.outline(root, document_name), key)
        if node is None:
            return None
        self.encoder.encode(record, node.element, indent=element_indent(node.element))
        return self.decoder.decode(node.element)


def strip_bookkeeping(root: etree._Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str) and CID_ATTRIBUTE in element.attrib:
            del element.attrib[CID_ATTRIBUTE]
