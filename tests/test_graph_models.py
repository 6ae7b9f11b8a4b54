"""Tests for Node, Edge and Model."""

import pytest

from meshgraph.core.errors import ConstructionError, EdgeNameError
from meshgraph.graph.models import Edge, Model, Node, merge_models


class TestNode:
    def test_equality_is_by_exact_id(self):
        assert Node("orders", {"a"}) == Node("orders", {"b"})
        assert Node("orders") != Node("Orders")
        assert len({Node("orders"), Node("orders", {"x"})}) == 1

    def test_copy_is_independent(self):
        node = Node("orders", {"order-api"}, {"a->b"})
        clone = node.copy()
        clone.add_component("refund-api")
        clone.add_self_edge("b->c")
        assert node.components == {"order-api"}
        assert node.self_edges == {"a->b"}

    def test_dict_round_trip(self):
        node = Node("orders", {"b", "a"}, {"a->b"})
        data = node.to_dict()
        assert data == {"id": "orders", "components": ["a", "b"], "self_edges": ["a->b"]}
        restored = Node.from_dict(data)
        assert restored == node
        assert restored.components == node.components

    def test_from_dict_defaults(self):
        node = Node.from_dict({"id": "bare"})
        assert node.components == set()
        assert node.self_edges == set()


class TestEdge:
    def test_between_and_accessors(self):
        edge = Edge.between("orders", "payments", "order-api->pay-api")
        assert edge.source == "orders"
        assert edge.target == "payments"
        assert edge.service == "order-api->pay-api"
        assert edge.services == ("order-api", "pay-api")

    def test_equality_by_label(self):
        assert Edge.between("a", "b", "x->y") == Edge("a$$b$$x->y")

    def test_services_without_link(self):
        with pytest.raises(EdgeNameError):
            Edge.between("a.x", "b.y").services


class TestModel:
    def test_get_node_is_case_insensitive(self):
        model = Model.of([Node("Orders")])
        assert model.get_node("orders").id == "Orders"
        assert model.get_node("ORDERS").id == "Orders"
        assert model.get_node("payments") is None

    def test_get_node_prefers_exact_match(self):
        model = Model.of([Node("orders"), Node("ORDERS")])
        assert model.get_node("ORDERS").id == "ORDERS"
        assert model.get_node("orders").id == "orders"

    def test_validate_accepts_consistent_model(self):
        model = Model.of([Node("a"), Node("b")], [Edge.between("a", "b", "x->y")])
        assert model.validate() is model

    def test_validate_rejects_missing_endpoint(self):
        model = Model.of([Node("a")], [Edge.between("a", "b", "x->y")])
        with pytest.raises(ConstructionError) as exc_info:
            model.validate()
        assert exc_info.value.details["missing"] == "b"

    def test_validate_rejects_malformed_edge(self):
        model = Model.of([Node("a")], [Edge("garbage")])
        with pytest.raises(ConstructionError):
            model.validate()

    def test_self_merge_is_idempotent(self):
        model = Model.of(
            [Node("a", {"x"}, {"x->y"}), Node("b", {"y"})],
            [Edge.between("a", "b", "x->y")],
        )
        merged = model.merge(model)
        assert merged.nodes == model.nodes
        assert merged.edge_labels == model.edge_labels
        assert merged.get_node("a").components == {"x"}
        assert merged.get_node("a").self_edges == {"x->y"}

    def test_merge_unions_components_without_mutating_inputs(self):
        left = Model.of([Node("a", {"x"}, {"x->y"})])
        right = Model.of([Node("a", {"z"}, {"z->x"}), Node("b")])

        merged = left.merge(right)

        assert merged.get_node("a").components == {"x", "z"}
        assert merged.get_node("a").self_edges == {"x->y", "z->x"}
        assert {n.id for n in merged.nodes} == {"a", "b"}
        assert left.get_node("a").components == {"x"}
        assert right.get_node("a").components == {"z"}

    def test_merge_adds_connecting_edge(self):
        left = Model.of([Node("a.x")])
        right = Model.of([Node("b.y")])
        connecting = Edge.between("a.x", "b.y")
        merged = left.merge(right, connecting)
        assert merged.edges == frozenset({connecting})

    def test_merge_models_is_order_independent(self):
        first = Model.of([Node("a", {"x"}), Node("b")], [Edge.between("a", "b", "x->y")])
        second = Model.of([Node("a", {"w"}), Node("c")], [Edge.between("a", "c", "w->v")])

        forward = merge_models([first, second])
        backward = merge_models([second, first])

        assert forward.nodes == backward.nodes
        assert forward.edges == backward.edges
        assert forward.get_node("a").components == backward.get_node("a").components == {"x", "w"}

    def test_merge_models_empty(self):
        assert merge_models([]).is_empty()

    def test_dict_round_trip(self):
        model = Model.of(
            [Node("b"), Node("a", {"x"})],
            [Edge.between("a", "b", "x->y")],
        )
        data = model.to_dict()
        assert [n["id"] for n in data["nodes"]] == ["a", "b"]
        assert data["edges"] == ["a$$b$$x->y"]
        assert Model.from_dict(data) == model
