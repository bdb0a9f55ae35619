"""promptree - branching trees of AI prompts and generated responses."""

from promptree.errors import (
    DanglingEdgeError,
    DuplicateIdError,
    GenerationBatchError,
    GenerationError,
    ImportParseError,
    PromptreeError,
)
from promptree.graph.store import GraphStore
from promptree.models.graph import (
    Edge,
    GraphDocument,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
)
from promptree.session import ConversationSession

__all__ = [
    # Errors
    "DanglingEdgeError",
    "DuplicateIdError",
    "GenerationBatchError",
    "GenerationError",
    "ImportParseError",
    "PromptreeError",
    # Graph
    "Edge",
    "GraphDocument",
    "GraphSnapshot",
    "GraphStore",
    "Node",
    "NodeKind",
    "Position",
    # High-level API
    "ConversationSession",
]
