from __future__ import annotations

from lxml import etree

from domain.models import INDENT, ROUTE_TAG


def create_xml_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def parse_route_xml(content: str | bytes) -> etree._Element:
    raw = content.encode("utf-8") if isinstance(content, str) else content
    try:
        return etree.fromstring(raw, parser=create_xml_parser())
    except etree.XMLSyntaxError as exc:
        msg = f"Route XML is not well-formed: {exc}"
        raise ValueError(msg) from exc


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def namespace_of(element: etree._Element) -> str | None:
    return etree.QName(element).namespace


def qualified_tag(name: str, namespace: str | None) -> str:
    return f"{{{namespace}}}{name}" if namespace else name


def new_element(name: str, namespace: str | None) -> etree._Element:
    nsmap = {None: namespace} if namespace else None
    return etree.Element(qualified_tag(name, namespace), nsmap=nsmap)


def child_elements(element: etree._Element) -> list[etree._Element]:
    # Comments and processing instructions carry a non-string tag.
    return [child for child in element if isinstance(child.tag, str)]


def children_named(element: etree._Element, name: str) -> list[etree._Element]:
    return [child for child in child_elements(element) if local_name(child) == name]


def text_content(element: etree._Element) -> str:
    parts: list[str] = [element.text or ""]
    for child in element:
        if isinstance(child.tag, str):
            parts.append(text_content(child))
        parts.append(child.tail or "")
    return "".join(parts)


def iter_routes(root: etree._Element) -> list[etree._Element]:
    return [element for element in root.iter(f"{{*}}{ROUTE_TAG}")]


def find_route(root: etree._Element, route_id: str) -> etree._Element | None:
    for route in iter_routes(root):
        if route.get("id") == route_id:
            return route
    return None


def append_indented(parent: etree._Element, child: etree._Element, indent: str) -> None:
    """Appends ``child`` on its own line at ``indent``.

    The closing tag of ``parent`` keeps its alignment. Parents written without
    line breaks stay compact.
    """
    if len(parent):
        last = parent[-1]
        if "\n" in (last.tail or ""):
            child.tail = last.tail
            last.tail = "\n" + indent
    elif not (parent.text or "").strip():
        parent.text = "\n" + indent
        child.tail = "\n" + indent[: -len(INDENT)]
    parent.append(child)


def insert_indented(
    parent: etree._Element, index: int, child: etree._Element, indent: str
) -> None:
    """Inserts ``child`` before the node at ``index``, on the same indentation."""
    if index >= len(parent):
        append_indented(parent, child, indent)
        return
    following = parent[index]
    previous = following.getprevious()
    preceding = (previous.tail if previous is not None else parent.text) or ""
    if not preceding.strip():
        child.tail = preceding
    parent.insert(index, child)


def element_indent(element: etree._Element) -> str:
    parent = element.getparent()
    if parent is None:
        return ""
    previous = element.getprevious()
    preceding = (previous.tail if previous is not None else parent.text) or ""
    if "\n" not in preceding:
        return ""
    tail = preceding.rsplit("\n", 1)[1]
    return tail if not tail.strip() else ""


def remove_indented(parent: etree._Element, child: etree._Element) -> None:
    # The last child's tail holds the indentation of the closing tag.
    if child.getnext() is None:
        previous = child.getprevious()
        if previous is not None:
            previous.tail = child.tail
        else:
            parent.text = child.tail
    parent.remove(child)
