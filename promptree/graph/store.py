"""In-memory owner of the canonical node and edge sequences.

Every mutation builds a new ``GraphSnapshot`` from the last committed one
and swaps it in with a single assignment, so listeners and readers never
observe a half-applied change.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from promptree.errors import DanglingEdgeError, DuplicateIdError
from promptree.models.graph import Edge, GraphSnapshot, Node

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[GraphSnapshot], None]


class GraphStore:
    """Holds the graph and enforces id uniqueness and edge integrity."""

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        edges: Iterable[Edge] = (),
    ) -> None:
        self._snapshot = GraphSnapshot()
        self._listeners: list[SnapshotListener] = []
        nodes = list(nodes)
        edges = list(edges)
        if nodes or edges:
            self.add(nodes, edges)

    # --- reads ---

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._snapshot.nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._snapshot.edges

    def snapshot(self) -> GraphSnapshot:
        """Return the current immutable snapshot."""
        return self._snapshot

    def get_node(self, node_id: str) -> Node | None:
        for node in self._snapshot.nodes:
            if node.id == node_id:
                return node
        return None

    def find_by_predicate(self, predicate: Callable[[Node], bool]) -> list[Node]:
        """Return matching nodes in insertion order."""
        return [node for node in self._snapshot.nodes if predicate(node)]

    def find_edges(self, predicate: Callable[[Edge], bool]) -> list[Edge]:
        """Return matching edges in insertion order."""
        return [edge for edge in self._snapshot.edges if predicate(edge)]

    def children_of(self, node_id: str) -> list[str]:
        """Distinct existing targets of ``node_id``, in edge insertion order."""
        present = self._snapshot.node_ids()
        children: list[str] = []
        for edge in self._snapshot.edges:
            if edge.source == node_id and edge.target in present and edge.target not in children:
                children.append(edge.target)
        return children

    def parents_of(self, node_id: str) -> list[str]:
        """Distinct sources pointing at ``node_id``, in edge insertion order."""
        parents: list[str] = []
        for edge in self._snapshot.edges:
            if edge.target == node_id and edge.source not in parents:
                parents.append(edge.source)
        return parents

    def max_x(self) -> float | None:
        """Rightmost node x coordinate, or None for an empty graph."""
        if not self._snapshot.nodes:
            return None
        return max(node.position.x for node in self._snapshot.nodes)

    # --- observers ---

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a callback run after every commit; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, nodes: tuple[Node, ...], edges: tuple[Edge, ...]) -> None:
        self._snapshot = GraphSnapshot(nodes=nodes, edges=edges)
        for listener in list(self._listeners):
            listener(self._snapshot)

    # --- writes ---

    def add(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()) -> None:
        """Insert nodes and edges together, or nothing at all.

        Raises:
            DuplicateIdError: a node or edge id already exists (or repeats in the batch).
            DanglingEdgeError: an edge endpoint is neither present nor in ``nodes``.
        """
        nodes = tuple(nodes)
        edges = tuple(edges)

        node_ids = self._snapshot.node_ids()
        for node in nodes:
            if node.id in node_ids:
                raise DuplicateIdError(node.id, "node")
            node_ids.add(node.id)

        edge_ids = {edge.id for edge in self._snapshot.edges}
        for edge in edges:
            if edge.id in edge_ids:
                raise DuplicateIdError(edge.id, "edge")
            missing = [end for end in (edge.source, edge.target) if end not in node_ids]
            if missing:
                raise DanglingEdgeError(edge.id, missing)
            edge_ids.add(edge.id)

        self._commit(self._snapshot.nodes + nodes, self._snapshot.edges + edges)
        logger.debug("added %d node(s), %d edge(s)", len(nodes), len(edges))

    def add_node(self, node: Node) -> None:
        self.add(nodes=[node])

    def add_edge(self, edge: Edge) -> None:
        self.add(edges=[edge])

    def update_node_content(self, node_id: str, content: str) -> None:
        """Replace a node's content; absent ids are ignored."""
        self.update_node_contents({node_id: content})

    def update_node_contents(self, contents: dict[str, str]) -> None:
        """Replace the content of several nodes in one commit."""
        if not any(node.id in contents for node in self._snapshot.nodes):
            return
        nodes = tuple(
            node.model_copy(update={"content": contents[node.id]}) if node.id in contents else node
            for node in self._snapshot.nodes
        )
        self._commit(nodes, self._snapshot.edges)

    def set_edges_animated(self, edge_ids: Iterable[str], animated: bool) -> None:
        """Set the animated flag on the given edges; absent ids are ignored."""
        wanted = set(edge_ids)
        if not any(edge.id in wanted for edge in self._snapshot.edges):
            return
        edges = tuple(
            edge.model_copy(update={"animated": animated}) if edge.id in wanted else edge
            for edge in self._snapshot.edges
        )
        self._commit(self._snapshot.nodes, edges)

    def settle(self, contents: dict[str, str], edge_ids: Iterable[str]) -> None:
        """Write contents and stop the given edges animating, in one commit.

        Absent node and edge ids are ignored; nothing is committed when none match.
        """
        done = set(edge_ids)
        if not any(node.id in contents for node in self._snapshot.nodes) and not any(
            edge.id in done for edge in self._snapshot.edges
        ):
            return
        nodes = tuple(
            node.model_copy(update={"content": contents[node.id]}) if node.id in contents else node
            for node in self._snapshot.nodes
        )
        edges = tuple(
            edge.model_copy(update={"animated": False}) if edge.id in done else edge
            for edge in self._snapshot.edges
        )
        self._commit(nodes, edges)

    def remove_nodes(self, node_ids: Iterable[str]) -> None:
        """Remove nodes and every edge touching one of them."""
        doomed = set(node_ids)
        nodes = tuple(node for node in self._snapshot.nodes if node.id not in doomed)
        edges = tuple(
            edge
            for edge in self._snapshot.edges
            if edge.source not in doomed and edge.target not in doomed
        )
        self._commit(nodes, edges)

    def remove_edges(self, edge_ids: Iterable[str]) -> None:
        doomed = set(edge_ids)
        edges = tuple(edge for edge in self._snapshot.edges if edge.id not in doomed)
        self._commit(self._snapshot.nodes, edges)
