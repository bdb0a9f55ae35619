"""Save/load of the graph as JSON, and plain-text tree export."""

from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from promptree.errors import DanglingEdgeError, DuplicateIdError, ImportParseError
from promptree.graph.layout import DEFAULT_ROOT_X, GROUP_SPACING
from promptree.graph.store import GraphStore
from promptree.graph.tree_ops import render_tree_text
from promptree.models.graph import Edge, GraphDocument, Node, NodeKind, Position
from promptree.utils.identifiers import date_stamp

logger = logging.getLogger(__name__)

IMPORT_PREFIX = "imported-"


def json_filename(day: date | None = None) -> str:
    return f"graph-{date_stamp(day)}.json"


def tree_filename(day: date | None = None) -> str:
    return f"conversation-tree-{date_stamp(day)}.txt"


def to_document(store: GraphStore, response_count: int) -> GraphDocument:
    snapshot = store.snapshot()
    return GraphDocument(
        nodes=list(snapshot.nodes),
        edges=list(snapshot.edges),
        response_count=response_count,
    )


def export_json(store: GraphStore, response_count: int) -> str:
    """Serialize the whole graph to the save-file format."""
    document = to_document(store, response_count)
    return document.model_dump_json(by_alias=True, indent=2)


def parse_document(raw: str | bytes) -> GraphDocument:
    """Parse and validate a save file.

    Raises:
        ImportParseError: invalid JSON, wrong shape, a repeated node or edge
            id, or an edge pointing at a node that is not in the file.
    """
    try:
        document = GraphDocument.model_validate_json(raw)
    except ValidationError as e:
        raise ImportParseError(f"Invalid graph file: {e}") from e

    for entity, items in (("node", document.nodes), ("edge", document.edges)):
        seen = set()
        for item in items:
            if item.id in seen:
                raise ImportParseError(f"Invalid graph file: {DuplicateIdError(item.id, entity)}")
            seen.add(item.id)

    node_ids = {node.id for node in document.nodes}
    for edge in document.edges:
        missing = [end for end in (edge.source, edge.target) if end not in node_ids]
        if missing:
            raise ImportParseError(
                f"Invalid graph file: {DanglingEdgeError(edge.id, missing)}"
            )
    return document


def import_offset(store: GraphStore) -> float:
    """Horizontal shift that keeps imported nodes clear of existing ones."""
    max_x = store.max_x()
    if max_x is None or max_x < 0:
        return DEFAULT_ROOT_X
    return max_x + GROUP_SPACING


def remap_document(document: GraphDocument, x_offset: float) -> tuple[list[Node], list[Edge]]:
    """Prefix every id with ``imported-`` and shift nodes right by ``x_offset``."""
    nodes = [
        node.model_copy(
            update={
                "id": IMPORT_PREFIX + node.id,
                "position": Position(x=node.position.x + x_offset, y=node.position.y),
            }
        )
        for node in document.nodes
    ]
    edges = [
        edge.model_copy(
            update={
                "id": IMPORT_PREFIX + edge.id,
                "source": IMPORT_PREFIX + edge.source,
                "target": IMPORT_PREFIX + edge.target,
            }
        )
        for edge in document.edges
    ]
    return nodes, edges


def import_json(store: GraphStore, raw: str | bytes) -> GraphDocument:
    """Merge a save file into the store.

    The store is left untouched when parsing fails or when the remapped
    ids collide with existing ones.

    Returns:
        the parsed document (ids as found in the file)
    """
    document = parse_document(raw)
    nodes, edges = remap_document(document, import_offset(store))
    store.add(nodes, edges)
    logger.info("imported %d node(s), %d edge(s)", len(nodes), len(edges))
    return document


def export_tree_text(store: GraphStore) -> str | None:
    """Text tree rooted at the first system node, or None if there is none."""
    roots = store.find_by_predicate(lambda node: node.kind == NodeKind.system)
    if not roots:
        return None
    return render_tree_text(store, roots[0].id)
