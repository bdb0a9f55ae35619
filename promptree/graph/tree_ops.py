"""Tree algorithms over the store: descendants, cascading delete, text tree.

Edges are not validated to be acyclic, so every traversal here is
iterative and tracks visited nodes.
"""

from __future__ import annotations

import logging
from typing import Iterable

from promptree.graph.store import GraphStore

logger = logging.getLogger(__name__)

BRANCH_MARKER = "|__ "
LAST_CHILD_INDENT = "    "
CHILD_INDENT = "|   "


def get_descendant_ids(store: GraphStore, node_id: str) -> set[str]:
    """All node ids reachable from ``node_id`` along edges, excluding itself."""
    descendants: set[str] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        for child in store.children_of(current):
            if child == node_id or child in descendants:
                continue
            descendants.add(child)
            stack.append(child)
    return descendants


def cascading_delete(store: GraphStore, selected_ids: Iterable[str]) -> set[str]:
    """Delete the selected nodes with their whole subtrees.

    Returns:
        the ids that were removed from the store
    """
    selected = set(selected_ids)
    doomed = set(selected)
    for node_id in selected:
        doomed |= get_descendant_ids(store, node_id)

    present = store.snapshot().node_ids()
    removed = doomed & present
    store.remove_nodes(doomed)
    logger.info("cascading delete removed %d node(s)", len(removed))
    return removed


def first_line(content: str) -> str:
    return content.split("\n")[0]


def render_tree_text(store: GraphStore, root_id: str) -> str:
    """Render the tree under ``root_id`` as indented ASCII.

    Example::

        You are a helpful AI assistant...
            |__ Hello
                |__ Hi there!
    """
    root = store.get_node(root_id)
    if root is None:
        return ""

    lines: list[str] = []
    visited: set[str] = set()
    # (node id, prefix); children pushed in reverse so they pop in edge order
    stack: list[tuple[str, str]] = [(root_id, "")]
    while stack:
        node_id, prefix = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        node = store.get_node(node_id)
        marker = BRANCH_MARKER if prefix else ""
        lines.append(f"{prefix}{marker}{first_line(node.content)}\n")

        children = store.children_of(node_id)
        for index in range(len(children) - 1, -1, -1):
            is_last = index == len(children) - 1
            child_prefix = prefix + (LAST_CHILD_INDENT if is_last else CHILD_INDENT)
            stack.append((children[index], child_prefix))

    return "".join(lines)
