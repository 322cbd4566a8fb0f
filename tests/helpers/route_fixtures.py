from __future__ import annotations

from functools import cache, lru_cache
from pathlib import Path

from lxml import etree

from domain.xml_nodes import parse_route_xml

SPRING_NS = "http://camel.apache.org/schema/spring"


@lru_cache(maxsize=1)
def repo_root() -> Path:
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    raise RuntimeError("Repository root not found")


@cache
def _load_route_text_cached(name: str) -> str:
    return (repo_root() / "data" / "routes" / name).read_text(encoding="utf-8")


def load_route_fixture(name: str) -> etree._Element:
    return parse_route_xml(_load_route_text_cached(name))


def parse_routes(body: str, namespace: str | None = SPRING_NS) -> etree._Element:
    """Wraps ``body`` in a ``routes`` element and parses it."""
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return parse_route_xml(f"<routes{xmlns}>{body}</routes>")


def first(root: etree._Element, name: str) -> etree._Element:
    for element in root.iter(f"{{*}}{name}"):
        return element
    raise AssertionError(f"No <{name}> element found")
