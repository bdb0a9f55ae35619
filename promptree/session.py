"""A conversation session: the graph plus the client's editing context.

Selection and response count are UI state; the session carries them
explicitly and passes them into the graph operations.
"""

from __future__ import annotations

import logging
from typing import Iterable

from promptree.config import MAX_RESPONSE_COUNT, MIN_RESPONSE_COUNT
from promptree.graph import serializer
from promptree.graph.layout import place_system_root
from promptree.graph.store import GraphStore
from promptree.graph.tree_ops import cascading_delete
from promptree.models.graph import Edge, GraphDocument, Node, NodeKind, Position
from promptree.sdk.fanout import PendingBatch, settle_batch, stage_prompt
from promptree.sdk.generation import Generate
from promptree.utils.identifiers import edge_id, generate_system_id

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_ID = "system-node"
DEFAULT_SYSTEM_CONTENT = "You are a helpful AI assistant..."
NEW_SYSTEM_CONTENT = "Configure system behavior..."
SYSTEM_PROMPT_TEMPERATURE = 0.7


def default_system_node() -> Node:
    return Node(
        id=DEFAULT_SYSTEM_ID,
        kind=NodeKind.system,
        content=DEFAULT_SYSTEM_CONTENT,
        position=Position(x=400, y=200),
    )


class ConversationSession:
    """Every user action on the conversation tree, over one GraphStore.

    Usage:
        session = ConversationSession(generate=build_generator(get_settings()))
        session.select(["system-node"])
        await session.new_prompt("Hello")
    """

    def __init__(
        self,
        generate: Generate,
        store: GraphStore | None = None,
        response_count: int = 3,
    ) -> None:
        """
        Args:
            generate: async ``(prompt, temperature) -> text`` backend
            store: graph to work on; a fresh one with the default system node if None
            response_count: completions generated per prompt (1-5)
        """
        self.generate = generate
        self.store = store if store is not None else GraphStore([default_system_node()])
        self.selected_ids: set[str] = set()
        self.response_count = MIN_RESPONSE_COUNT
        self.set_response_count(response_count)

    # --- selection ---

    def select(self, node_ids: Iterable[str]) -> None:
        """Replace the selection; unknown ids are dropped."""
        present = self.store.snapshot().node_ids()
        self.selected_ids = {node_id for node_id in node_ids if node_id in present}

    def find_selected(self) -> list[Node]:
        """Selected nodes still in the graph, in graph order."""
        return self.store.find_by_predicate(lambda node: node.id in self.selected_ids)

    def update_selected_content(self, content: str) -> None:
        for node in self.find_selected():
            self.store.update_node_content(node.id, content)

    # --- settings ---

    def set_response_count(self, count: int) -> None:
        if not MIN_RESPONSE_COUNT <= count <= MAX_RESPONSE_COUNT:
            raise ValueError(
                f"response count must be between {MIN_RESPONSE_COUNT} "
                f"and {MAX_RESPONSE_COUNT}, got {count}"
            )
        self.response_count = count

    # --- structure ---

    def add_system_node(self) -> Node:
        """Start a new conversation root to the right of everything."""
        node = Node(
            id=generate_system_id(),
            kind=NodeKind.system,
            content=NEW_SYSTEM_CONTENT,
            position=place_system_root(self.store.max_x()),
        )
        self.store.add_node(node)
        return node

    def connect(self, source: str, target: str) -> Edge:
        """Manually link two nodes; linking an already linked pair is a no-op.

        The edge may close a cycle; tree algorithms tolerate that.
        """
        existing = self.store.find_edges(
            lambda edge: edge.source == source and edge.target == target
        )
        if existing:
            return existing[0]
        # "a-b"->"c" and "a"->"b-c" derive the same id
        base = edge_id(source, target)
        taken = {edge.id for edge in self.store.edges}
        new_id, suffix = base, 1
        while new_id in taken:
            new_id = f"{base}-{suffix}"
            suffix += 1
        edge = Edge(id=new_id, source=source, target=target)
        self.store.add_edge(edge)
        return edge

    def delete_selected(self) -> set[str]:
        """Cascading delete of the selection."""
        removed = cascading_delete(self.store, self.selected_ids)
        self.selected_ids = set()
        return removed

    # --- generation ---

    def stage_new_prompt(self, prompt_text: str) -> PendingBatch | None:
        """Stage a prompt under the first selected node; None without a selection."""
        selected = self.find_selected()
        if not selected:
            logger.debug("new prompt ignored: nothing selected")
            return None
        return stage_prompt(self.store, selected[0].id, prompt_text, self.response_count)

    async def settle(self, batch: PendingBatch) -> bool:
        return await settle_batch(self.store, batch, self.generate)

    async def new_prompt(self, prompt_text: str) -> PendingBatch | None:
        """Stage a prompt and wait for its completions."""
        batch = self.stage_new_prompt(prompt_text)
        if batch is None:
            return None
        await self.settle(batch)
        return batch

    async def run_system_prompt(self) -> str | None:
        """Send the first system node's instructions to the backend.

        Returns:
            the generated text, or None when there is no non-empty system node
        """
        systems = self.store.find_by_predicate(lambda node: node.kind == NodeKind.system)
        if not systems or not systems[0].content:
            return None
        return await self.generate(systems[0].content, SYSTEM_PROMPT_TEMPERATURE)

    # --- files ---

    def export_json(self) -> str:
        return serializer.export_json(self.store, self.response_count)

    def export_tree_text(self) -> str | None:
        return serializer.export_tree_text(self.store)

    def import_json(self, raw: str | bytes) -> GraphDocument:
        """Merge a save file; the session keeps its own response count."""
        return serializer.import_json(self.store, raw)
