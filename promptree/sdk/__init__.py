"""Generation backends and the prompt fan-out."""

from promptree.sdk.fanout import (
    ERROR_CONTENT,
    PENDING_CONTENT,
    PendingBatch,
    settle_batch,
    stage_prompt,
    submit_prompt,
    temperatures,
)
from promptree.sdk.generation import Generate, build_generator

__all__ = [
    "ERROR_CONTENT",
    "PENDING_CONTENT",
    "PendingBatch",
    "settle_batch",
    "stage_prompt",
    "submit_prompt",
    "temperatures",
    "Generate",
    "build_generator",
]
