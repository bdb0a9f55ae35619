"""Deterministic placement of newly created nodes.

Positions are computed once when a node is created; nothing is re-laid
out afterwards. All placement functions are pure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptree.models.graph import Position

if TYPE_CHECKING:
    from promptree.graph.store import GraphStore

VERTICAL_SPACING = 120  # between tree levels
CLUSTER_SPACING = 150  # between completions of one prompt
GROUP_SPACING = 400  # between sibling prompts, and between roots
LEVEL_SPREAD = 1.2  # per-depth growth of sibling spacing

DEFAULT_ROOT_X = 300
ROOT_Y = 200


def spread_multiplier(depth: int) -> float:
    return LEVEL_SPREAD ** depth


def place_prompt(parent: Position, child_index: int, depth: int) -> Position:
    """Position of the ``child_index``-th prompt under ``parent``.

    Args:
        parent: position of the parent node
        child_index: number of children the parent already has
        depth: edges from the tree root to the parent, plus one
    """
    return Position(
        x=parent.x + child_index * GROUP_SPACING * spread_multiplier(depth),
        y=parent.y + VERTICAL_SPACING,
    )


def place_completions(prompt: Position, response_count: int) -> list[Position]:
    """Completions centered symmetrically one level below their prompt."""
    center = (response_count - 1) / 2
    return [
        Position(
            x=prompt.x + (index - center) * CLUSTER_SPACING,
            y=prompt.y + VERTICAL_SPACING,
        )
        for index in range(response_count)
    ]


def place_system_root(max_x: float | None) -> Position:
    """New conversation roots go to the right of everything, on the top row."""
    if max_x is None or max_x < 0:
        return Position(x=DEFAULT_ROOT_X, y=ROOT_Y)
    return Position(x=max_x + GROUP_SPACING, y=ROOT_Y)


def depth_of(store: GraphStore, node_id: str) -> int:
    """Number of edges between ``node_id`` and its root.

    Follows the first parent at each step; stops when a node repeats so a
    cycle cannot loop forever.
    """
    depth = 0
    seen = {node_id}
    current = node_id
    while True:
        parents = store.parents_of(current)
        if not parents or parents[0] in seen:
            return depth
        current = parents[0]
        seen.add(current)
        depth += 1
