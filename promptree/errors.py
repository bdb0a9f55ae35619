"""Exceptions raised by the conversation graph core."""


class PromptreeError(Exception):
    """Base class for all promptree errors."""
    pass


class DuplicateIdError(PromptreeError):
    """Raised when a node or edge id is already present in the graph."""

    def __init__(self, entity_id: str, entity: str = "node") -> None:
        self.entity_id = entity_id
        self.entity = entity
        super().__init__(f"Duplicate {entity} id: {entity_id}")


class DanglingEdgeError(PromptreeError):
    """Raised when an edge references a node that does not exist."""

    def __init__(self, edge_id: str, missing: list[str]) -> None:
        self.edge_id = edge_id
        self.missing = missing
        super().__init__(
            f"Edge {edge_id} references missing node(s): {', '.join(missing)}"
        )


class GenerationError(PromptreeError):
    """A single call to a generation backend failed."""
    pass


class GenerationBatchError(PromptreeError):
    """One or more calls of a concurrent generation batch failed.

    Recovered inside the fan-out; callers never see it.
    """

    def __init__(self, prompt_id: str, failures: list[BaseException]) -> None:
        self.prompt_id = prompt_id
        self.failures = failures
        super().__init__(
            f"{len(failures)} generation call(s) failed for prompt {prompt_id}: "
            f"{failures[0]!r}"
        )


class ImportParseError(PromptreeError):
    """Raised when an imported graph file is malformed."""
    pass
