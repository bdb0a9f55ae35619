"""Graph store, layout, tree algorithms and serialization."""

from promptree.graph.store import GraphStore
from promptree.graph.tree_ops import (
    cascading_delete,
    get_descendant_ids,
    render_tree_text,
)
from promptree.graph.serializer import (
    export_json,
    export_tree_text,
    import_json,
    json_filename,
    tree_filename,
)

__all__ = [
    "GraphStore",
    "cascading_delete",
    "get_descendant_ids",
    "render_tree_text",
    "export_json",
    "export_tree_text",
    "import_json",
    "json_filename",
    "tree_filename",
]
