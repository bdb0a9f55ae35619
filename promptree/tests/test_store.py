"""Tests for GraphStore integrity rules and atomic commits."""

import pytest

from promptree.errors import DanglingEdgeError, DuplicateIdError
from promptree.graph.store import GraphStore
from promptree.models.graph import Edge, Node, NodeKind, Position


def _node(node_id: str, kind: NodeKind = NodeKind.prompt, x: float = 0, y: float = 0) -> Node:
    return Node(id=node_id, kind=kind, content=f"content of {node_id}", position=Position(x=x, y=y))


def _edge(source: str, target: str) -> Edge:
    return Edge(id=f"edge-{source}-{target}", source=source, target=target)


class TestAdd:
    """Test insertion rules."""

    def test_add_node(self):
        store = GraphStore()
        store.add_node(_node("a"))
        assert [node.id for node in store.nodes] == ["a"]

    def test_duplicate_node_id_rejected(self):
        store = GraphStore([_node("a")])
        with pytest.raises(DuplicateIdError) as exc_info:
            store.add_node(_node("a"))
        assert exc_info.value.entity_id == "a"
        assert len(store.nodes) == 1

    def test_edge_requires_both_endpoints(self):
        store = GraphStore([_node("a")])
        with pytest.raises(DanglingEdgeError) as exc_info:
            store.add_edge(_edge("a", "missing"))
        assert exc_info.value.missing == ["missing"]
        assert store.edges == ()

    def test_duplicate_edge_id_rejected(self):
        store = GraphStore([_node("a"), _node("b")], [_edge("a", "b")])
        with pytest.raises(DuplicateIdError):
            store.add_edge(_edge("a", "b"))

    def test_batch_add_is_all_or_nothing(self):
        """A bad edge in a batch leaves the store unchanged."""
        store = GraphStore([_node("a")])
        before = store.snapshot()
        with pytest.raises(DanglingEdgeError):
            store.add([_node("b")], [_edge("a", "b"), _edge("b", "ghost")])
        assert store.snapshot() is before

    def test_batch_edges_may_reference_batch_nodes(self):
        store = GraphStore([_node("a")])
        store.add([_node("b"), _node("c")], [_edge("a", "b"), _edge("b", "c")])
        assert len(store.nodes) == 3
        assert len(store.edges) == 2

    def test_duplicate_within_batch_rejected(self):
        store = GraphStore()
        with pytest.raises(DuplicateIdError):
            store.add([_node("a"), _node("a")])
        assert store.nodes == ()


class TestUpdate:
    """Test content and flag updates."""

    def test_update_content_changes_only_content(self):
        store = GraphStore([_node("a", x=5, y=6)])
        store.update_node_content("a", "new text")
        node = store.get_node("a")
        assert node.content == "new text"
        assert node.position == Position(x=5, y=6)
        assert node.kind == NodeKind.prompt

    def test_update_absent_id_is_noop(self):
        store = GraphStore([_node("a")])
        before = store.snapshot()
        store.update_node_content("ghost", "text")
        assert store.snapshot() is before

    def test_set_edges_animated(self):
        store = GraphStore([_node("a"), _node("b")], [_edge("a", "b")])
        store.set_edges_animated(["edge-a-b"], True)
        assert store.edges[0].animated is True
        store.set_edges_animated(["edge-a-b", "ghost"], False)
        assert store.edges[0].animated is False

    def test_settle_is_one_commit(self):
        edge = Edge(id="edge-a-b", source="a", target="b", animated=True)
        store = GraphStore([_node("a"), _node("b")], [edge])
        seen = []
        store.subscribe(seen.append)

        store.settle({"b": "answer", "ghost": "x"}, ["edge-a-b"])

        assert len(seen) == 1
        assert seen[0].nodes[1].content == "answer"
        assert seen[0].edges[0].animated is False

    def test_settle_absent_ids_is_noop(self):
        store = GraphStore([_node("a")])
        before = store.snapshot()
        store.settle({"ghost": "x"}, ["edge-ghost"])
        assert store.snapshot() is before


class TestRemove:
    """Test removal with referential cleanup."""

    def test_remove_nodes_drops_touching_edges(self):
        store = GraphStore(
            [_node("a"), _node("b"), _node("c")],
            [_edge("a", "b"), _edge("b", "c"), _edge("a", "c")],
        )
        store.remove_nodes({"b"})
        assert [node.id for node in store.nodes] == ["a", "c"]
        assert [edge.id for edge in store.edges] == ["edge-a-c"]

    def test_remove_edges(self):
        store = GraphStore([_node("a"), _node("b")], [_edge("a", "b")])
        store.remove_edges({"edge-a-b"})
        assert store.edges == ()
        assert len(store.nodes) == 2

    def test_listeners_see_only_complete_states(self):
        """No snapshot ever holds an edge whose endpoint is gone."""
        store = GraphStore(
            [_node("a"), _node("b"), _node("c")],
            [_edge("a", "b"), _edge("b", "c")],
        )
        seen = []

        def check(snapshot):
            ids = snapshot.node_ids()
            seen.append(all(e.source in ids and e.target in ids for e in snapshot.edges))

        store.subscribe(check)
        store.remove_nodes({"b", "c"})
        assert seen == [True]

    def test_unsubscribe(self):
        store = GraphStore()
        calls = []
        unsubscribe = store.subscribe(calls.append)
        store.add_node(_node("a"))
        unsubscribe()
        store.add_node(_node("b"))
        assert len(calls) == 1


class TestQueries:
    """Test read helpers."""

    def test_find_by_predicate_keeps_order(self):
        store = GraphStore([
            _node("s1", NodeKind.system),
            _node("p1"),
            _node("s2", NodeKind.system),
        ])
        found = store.find_by_predicate(lambda node: node.kind == NodeKind.system)
        assert [node.id for node in found] == ["s1", "s2"]

    def test_children_follow_edge_order(self):
        store = GraphStore(
            [_node("root"), _node("b"), _node("a")],
            [_edge("root", "a"), _edge("root", "b")],
        )
        assert store.children_of("root") == ["a", "b"]
        assert store.parents_of("a") == ["root"]

    def test_max_x(self):
        assert GraphStore().max_x() is None
        store = GraphStore([_node("a", x=-50), _node("b", x=120)])
        assert store.max_x() == 120
