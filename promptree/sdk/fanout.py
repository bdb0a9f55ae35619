"""Concurrent generation of several completions for one prompt.

A prompt is handled in two steps. ``stage_prompt`` commits the prompt node
and its placeholder completions right away, so the client always sees
the placeholders before any network call starts. ``settle_batch`` then
runs one generation call per placeholder and joins them all: either every
placeholder gets its result, or every placeholder gets the error text.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from promptree.errors import DanglingEdgeError, GenerationBatchError
from promptree.graph.layout import depth_of, place_completions, place_prompt
from promptree.graph.store import GraphStore
from promptree.models.graph import Edge, Node, NodeKind
from promptree.sdk.generation import Generate
from promptree.utils.identifiers import completion_id, edge_id, generate_prompt_id

logger = logging.getLogger(__name__)

PENDING_CONTENT = "Generating response..."
ERROR_CONTENT = "Error generating response. Please try again."

BASE_TEMPERATURE = 0.7
TEMPERATURE_RANGE = 0.3


@dataclass
class PendingBatch:
    """Placeholders staged for one prompt, awaiting generation."""

    prompt_id: str
    prompt_text: str
    completion_ids: list[str]
    edge_ids: list[str]  # prompt -> placeholder edges, animated while pending
    temperatures: list[float] = field(default_factory=list)


def temperatures(response_count: int) -> list[float]:
    """Temperatures spread linearly over [0.7, 1.0) by completion index."""
    return [
        BASE_TEMPERATURE + index * TEMPERATURE_RANGE / response_count
        for index in range(response_count)
    ]


def stage_prompt(
    store: GraphStore,
    parent_id: str,
    prompt_text: str,
    response_count: int,
) -> PendingBatch:
    """Insert a prompt node under ``parent_id`` with placeholder completions.

    Raises:
        ValueError: response_count is smaller than 1
        DanglingEdgeError: the parent node does not exist
    """
    if response_count < 1:
        raise ValueError(f"response_count must be at least 1, got {response_count}")

    prompt_id = generate_prompt_id()
    parent = store.get_node(parent_id)
    if parent is None:
        raise DanglingEdgeError(edge_id(parent_id, prompt_id), [parent_id])

    child_index = len(store.children_of(parent_id))
    depth = depth_of(store, parent_id) + 1
    prompt = Node(
        id=prompt_id,
        kind=NodeKind.prompt,
        content=prompt_text,
        position=place_prompt(parent.position, child_index, depth),
    )

    placeholders = [
        Node(
            id=completion_id(prompt_id, index),
            kind=NodeKind.completion,
            content=PENDING_CONTENT,
            position=position,
        )
        for index, position in enumerate(place_completions(prompt.position, response_count))
    ]

    loading_edges = [
        Edge(id=edge_id(prompt_id, node.id), source=prompt_id, target=node.id, animated=True)
        for node in placeholders
    ]
    parent_edge = Edge(id=edge_id(parent_id, prompt_id), source=parent_id, target=prompt_id)

    store.add([prompt, *placeholders], [parent_edge, *loading_edges])
    logger.info(
        "staged prompt %s under %s with %d placeholder(s)",
        prompt_id, parent_id, response_count,
    )

    return PendingBatch(
        prompt_id=prompt_id,
        prompt_text=prompt_text,
        completion_ids=[node.id for node in placeholders],
        edge_ids=[edge.id for edge in loading_edges],
        temperatures=temperatures(response_count),
    )


async def _run_batch(batch: PendingBatch, generate: Generate) -> list[str]:
    """Run every call of the batch concurrently and wait for all of them.

    Raises:
        GenerationBatchError: at least one call failed
    """
    async def call(temperature: float) -> str:
        return await generate(batch.prompt_text, temperature)

    outcomes = await asyncio.gather(
        *(call(temperature) for temperature in batch.temperatures),
        return_exceptions=True,
    )
    failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if failures:
        raise GenerationBatchError(batch.prompt_id, failures)
    return [str(outcome) for outcome in outcomes]


async def settle_batch(store: GraphStore, batch: PendingBatch, generate: Generate) -> bool:
    """Generate the batch and write the outcome into its placeholders.

    Never raises for generation failures. Placeholders deleted in the
    meantime are skipped by the store.

    Returns:
        True when every call succeeded
    """
    try:
        responses = await _run_batch(batch, generate)
    except GenerationBatchError as e:
        logger.error("generation batch failed: %s", e)
        store.settle({node_id: ERROR_CONTENT for node_id in batch.completion_ids}, batch.edge_ids)
        return False

    store.settle(dict(zip(batch.completion_ids, responses)), batch.edge_ids)
    logger.debug("generation batch for %s settled", batch.prompt_id)
    return True


async def submit_prompt(
    store: GraphStore,
    parent_id: str,
    prompt_text: str,
    response_count: int,
    generate: Generate,
) -> PendingBatch:
    """Stage a prompt and wait for its batch to settle."""
    batch = stage_prompt(store, parent_id, prompt_text, response_count)
    await settle_batch(store, batch, generate)
    return batch
