from __future__ import annotations

from domain.services.route_node_labels import (
    language_label_suffix,
    route_node_uri,
    safe_dom_id,
    strip_uri_query,
)
from tests.helpers.route_fixtures import first, parse_routes


def test_route_node_uri_prefers_uri_then_reference() -> None:
    root = parse_routes(
        '<route><to uri="mock:a"/><bean ref="svc" method="run"/><process ref="worker"/></route>'
    )

    assert route_node_uri(first(root, "to")) == "mock:a"
    assert route_node_uri(first(root, "bean")) == "svc.run()"
    assert route_node_uri(first(root, "process")) == "ref:worker"
    assert route_node_uri(first(root, "route")) is None
    assert route_node_uri(None) is None


def test_strip_uri_query() -> None:
    assert strip_uri_query("file:in?noop=true&delay=5") == "file:in"
    assert strip_uri_query("direct:a") == "direct:a"


def test_safe_dom_id_replaces_unsafe_characters() -> None:
    assert safe_dom_id("orders.v2 main-route") == "orders_v2_main_route"
    assert safe_dom_id("already_safe9") == "already_safe9"


def test_method_language_suffix_names_the_bean() -> None:
    root = parse_routes(
        '<route><filter><method beanType="com.acme.Checks" method="isValid"/></filter></route>'
    )
    method = first(root, "method")

    assert language_label_suffix(method, "Method", False) == "Method com.acme.Checks isValid"
    assert language_label_suffix(method, "text", True) == "text isValid"


def test_other_languages_keep_their_label() -> None:
    root = parse_routes("<route><filter><simple>${body}</simple></filter></route>")

    assert language_label_suffix(first(root, "simple"), "${body}", True) == "${body}"
