"""Utility functions for promptree."""

from promptree.utils.identifiers import (
    completion_id,
    date_stamp,
    edge_id,
    generate_prompt_id,
    generate_system_id,
)

__all__ = [
    "completion_id",
    "date_stamp",
    "edge_id",
    "generate_prompt_id",
    "generate_system_id",
]
