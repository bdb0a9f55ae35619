"""Core data models for promptree."""

from promptree.models.graph import (
    Edge,
    GraphDocument,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
)

__all__ = [
    "Edge",
    "GraphDocument",
    "GraphSnapshot",
    "Node",
    "NodeKind",
    "Position",
]
