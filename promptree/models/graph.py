"""Data models for the conversation graph.

Nodes and edges are immutable pydantic models; the store replaces them
with updated copies instead of mutating them in place.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class NodeKind(str, Enum):
    """Role of a node in the conversation tree."""

    system = "system"
    prompt = "prompt"
    completion = "completion"


class Position(BaseModel):
    """2D canvas coordinate."""

    model_config = {"frozen": True}

    x: float
    y: float


class Node(BaseModel):
    """A single system/prompt/completion unit in the graph."""

    model_config = {"frozen": True, "extra": "ignore"}

    id: str
    kind: NodeKind
    content: str = ""
    position: Position

    @model_validator(mode="before")
    @classmethod
    def lift_client_payload(cls, data: Any) -> Any:
        """Accept nodes saved by the canvas client.

        Those carry ``type`` and ``data: {content, type}`` instead of
        ``kind``/``content``; ``data.type`` is the authoritative role since
        system nodes are rendered with the prompt component.
        """
        if not isinstance(data, dict) or "kind" in data:
            return data
        inner = data.get("data")
        if not isinstance(inner, dict):
            return data
        lifted = dict(data)
        lifted["kind"] = inner.get("type", data.get("type"))
        lifted.setdefault("content", inner.get("content", ""))
        return lifted


class Edge(BaseModel):
    """A directed parent -> child link."""

    model_config = {"frozen": True, "extra": "ignore"}

    id: str
    source: str
    target: str
    animated: bool = False  # set while the target is an in-flight placeholder


class GraphSnapshot(BaseModel):
    """Consistent, immutable view of the whole graph at one point in time."""

    model_config = {"frozen": True}

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}


class GraphDocument(BaseModel):
    """On-disk JSON format used for save and load."""

    model_config = {"populate_by_name": True}

    nodes: list[Node]
    edges: list[Edge] = Field(default_factory=list)
    response_count: int = Field(default=3, alias="responseCount")
