"""Integration tests for the conversation session."""

import asyncio
import json

import pytest

from promptree.errors import DanglingEdgeError
from promptree.models.graph import Node, NodeKind, Position
from promptree.sdk.fanout import ERROR_CONTENT
from promptree.session import (
    DEFAULT_SYSTEM_CONTENT,
    DEFAULT_SYSTEM_ID,
    NEW_SYSTEM_CONTENT,
    ConversationSession,
)


async def _answer(prompt: str, temperature: float) -> str:
    return f"answer to {prompt}"


async def _broken(prompt: str, temperature: float) -> str:
    raise ConnectionError("service unavailable")


class TestNewSession:
    """Test the initial graph."""

    def test_starts_with_default_system_node(self):
        session = ConversationSession(generate=_answer)
        assert len(session.store.nodes) == 1
        node = session.store.nodes[0]
        assert node.id == DEFAULT_SYSTEM_ID
        assert node.kind == NodeKind.system
        assert node.content == DEFAULT_SYSTEM_CONTENT
        assert node.position == Position(x=400, y=200)

    @pytest.mark.parametrize("count", [0, 6])
    def test_response_count_bounds(self, count):
        with pytest.raises(ValueError):
            ConversationSession(generate=_answer, response_count=count)


class TestPromptScenario:
    """The prompt-then-delete walkthrough."""

    def test_hello_with_two_responses(self):
        session = ConversationSession(generate=_answer, response_count=2)
        session.select([DEFAULT_SYSTEM_ID])

        batch = asyncio.run(session.new_prompt("Hello"))

        prompts = session.store.find_by_predicate(lambda n: n.kind == NodeKind.prompt)
        completions = session.store.find_by_predicate(lambda n: n.kind == NodeKind.completion)
        assert [p.position for p in prompts] == [Position(x=400, y=320)]
        assert [c.position for c in completions] == [Position(x=325, y=440), Position(x=475, y=440)]
        assert [c.content for c in completions] == ["answer to Hello", "answer to Hello"]
        assert len(session.store.edges) == 3
        assert batch.prompt_id == prompts[0].id

    def test_deleting_prompt_leaves_only_system_node(self):
        session = ConversationSession(generate=_answer, response_count=2)
        session.select([DEFAULT_SYSTEM_ID])
        batch = asyncio.run(session.new_prompt("Hello"))

        session.select([batch.prompt_id])
        removed = session.delete_selected()

        assert removed == {batch.prompt_id, *batch.completion_ids}
        assert [n.id for n in session.store.nodes] == [DEFAULT_SYSTEM_ID]
        assert session.store.edges == ()
        assert session.find_selected() == []

    def test_failed_generation_shows_error_text(self):
        session = ConversationSession(generate=_broken, response_count=3)
        session.select([DEFAULT_SYSTEM_ID])

        batch = asyncio.run(session.new_prompt("Hello"))

        contents = [session.store.get_node(i).content for i in batch.completion_ids]
        assert contents == [ERROR_CONTENT] * 3

    def test_prompt_without_selection_is_ignored(self):
        session = ConversationSession(generate=_answer)
        assert asyncio.run(session.new_prompt("Hello")) is None
        assert len(session.store.nodes) == 1


class TestEditing:
    """Test selection-driven edits."""

    def test_select_drops_unknown_ids(self):
        session = ConversationSession(generate=_answer)
        session.select([DEFAULT_SYSTEM_ID, "ghost"])
        assert session.selected_ids == {DEFAULT_SYSTEM_ID}

    def test_update_selected_content(self):
        session = ConversationSession(generate=_answer)
        session.select([DEFAULT_SYSTEM_ID])
        session.update_selected_content("Answer in French.")
        assert session.store.get_node(DEFAULT_SYSTEM_ID).content == "Answer in French."

    def test_add_system_node_goes_right(self):
        session = ConversationSession(generate=_answer)
        node = session.add_system_node()
        assert node.kind == NodeKind.system
        assert node.content == NEW_SYSTEM_CONTENT
        assert node.position == Position(x=800, y=200)

    def test_connect_is_idempotent_and_allows_cycles(self):
        session = ConversationSession(generate=_answer, response_count=1)
        session.select([DEFAULT_SYSTEM_ID])
        batch = asyncio.run(session.new_prompt("Hello"))

        first = session.connect(batch.completion_ids[0], DEFAULT_SYSTEM_ID)
        second = session.connect(batch.completion_ids[0], DEFAULT_SYSTEM_ID)
        assert first == second
        assert len(session.store.edges) == 3

        lines = session.export_tree_text().splitlines()
        assert lines == [
            DEFAULT_SYSTEM_CONTENT,
            "    |__ Hello",
            "        |__ answer to Hello",
        ]

    def test_connect_hyphenated_ids_get_distinct_edges(self):
        session = ConversationSession(generate=_answer)
        for node_id in ("a-b", "c", "a", "b-c"):
            session.store.add_node(
                Node(id=node_id, kind=NodeKind.prompt, position=Position(x=0, y=0))
            )

        first = session.connect("a-b", "c")
        second = session.connect("a", "b-c")

        assert first.id == "edge-a-b-c"
        assert second.id != first.id
        assert (second.source, second.target) == ("a", "b-c")
        assert len(session.store.edges) == 2
        assert session.connect("a", "b-c") == second

    def test_connect_unknown_node(self):
        session = ConversationSession(generate=_answer)
        with pytest.raises(DanglingEdgeError):
            session.connect(DEFAULT_SYSTEM_ID, "ghost")


class TestSystemPrompt:
    """Test sending the system instructions."""

    def test_sends_first_system_content(self):
        sent = []

        async def generate(prompt: str, temperature: float) -> str:
            sent.append((prompt, temperature))
            return "Understood."

        session = ConversationSession(generate=generate)
        assert asyncio.run(session.run_system_prompt()) == "Understood."
        assert sent == [(DEFAULT_SYSTEM_CONTENT, 0.7)]

    def test_empty_system_content_sends_nothing(self):
        session = ConversationSession(generate=_broken)
        session.select([DEFAULT_SYSTEM_ID])
        session.update_selected_content("")
        assert asyncio.run(session.run_system_prompt()) is None


class TestFiles:
    """Test export and import through the session."""

    def test_export_carries_response_count(self):
        session = ConversationSession(generate=_answer, response_count=4)
        assert json.loads(session.export_json())["responseCount"] == 4

    def test_import_merges_and_keeps_response_count(self):
        source = ConversationSession(generate=_answer, response_count=5)
        target = ConversationSession(generate=_answer, response_count=2)

        target.import_json(source.export_json())

        ids = [n.id for n in target.store.nodes]
        assert ids == [DEFAULT_SYSTEM_ID, f"imported-{DEFAULT_SYSTEM_ID}"]
        assert target.store.get_node(f"imported-{DEFAULT_SYSTEM_ID}").position.x == 1200
        assert target.response_count == 2
