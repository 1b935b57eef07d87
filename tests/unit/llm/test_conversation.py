"""
Tests for the Conversation store and the content-block message models.
"""

import pytest
from pydantic import ValidationError

from runeagent.llm.conversation import Conversation
from runeagent.llm.models import (
    AgentResponse,
    Message,
    Role,
    TextBlock,
    TokenUsage,
    ToolCall,
    ToolResultBlock,
    ToolUseBlock,
)


def _assistant_with_tools(*ids: str) -> list:
    return [ToolUseBlock(id=i, name="list_plugins", input={}) for i in ids]


class TestMessageModel:

    def test_user_message_rejects_tool_use(self):
        with pytest.raises(ValidationError):
            Message(role=Role.USER, content=[ToolUseBlock(id="t1", name="x")])

    def test_assistant_message_rejects_tool_result(self):
        with pytest.raises(ValidationError):
            Message(
                role=Role.ASSISTANT,
                content=[ToolResultBlock(tool_use_id="t1", content="ok")],
            )

    def test_parses_tagged_blocks(self):
        message = Message.model_validate({
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Looking it up."},
                {"type": "tool_use", "id": "t1", "name": "search_wiki", "input": {"query": "Vorkath"}},
            ],
        })
        assert isinstance(message.content[0], TextBlock)
        assert isinstance(message.content[1], ToolUseBlock)
        assert message.tool_uses[0].input == {"query": "Vorkath"}

    def test_dump_uses_type_tags(self):
        message = Message(role=Role.USER, content=[ToolResultBlock(tool_use_id="t1", content="ok")])
        assert message.model_dump(mode="json") == {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "t1", "content": "ok"}],
        }

    def test_text_joins_text_blocks(self):
        message = Message(
            role=Role.ASSISTANT,
            content=[TextBlock(text="a"), ToolUseBlock(id="t", name="x"), TextBlock(text="b")],
        )
        assert message.text == "ab"

    def test_is_tool_result(self):
        assert Message(
            role=Role.USER, content=[ToolResultBlock(tool_use_id="t", content="")]
        ).is_tool_result
        assert not Message(role=Role.USER, content=[TextBlock(text="hi")]).is_tool_result

    def test_token_usage_total_and_add(self):
        usage = TokenUsage(prompt_tokens=100, completion_tokens=50) + TokenUsage(
            prompt_tokens=10, completion_tokens=5
        )
        assert usage.total_tokens == 165

    def test_agent_response_defaults(self):
        response = AgentResponse(text="Done.")
        assert response.tool_calls == []
        assert response.truncated is False

    def test_tool_call_record(self):
        call = ToolCall(id="t1", name="get_item_price", arguments={"item_name": "Abyssal whip"}, result="1.5m")
        assert call.arguments == {"item_name": "Abyssal whip"}


class TestConversationInvariants:

    def test_starts_empty(self):
        assert len(Conversation()) == 0
        assert Conversation().last is None

    def test_first_message_must_be_user(self):
        conversation = Conversation()
        with pytest.raises(ValueError):
            conversation.add_assistant_turn([TextBlock(text="Hello")])

    def test_first_message_cannot_be_tool_results(self):
        conversation = Conversation()
        with pytest.raises(ValueError):
            conversation.add_tool_results([ToolResultBlock(tool_use_id="t1", content="x")])
        assert len(conversation) == 0

    def test_tool_results_must_answer_previous_calls(self):
        conversation = Conversation()
        conversation.add_user_text("hi")
        conversation.add_assistant_turn(_assistant_with_tools("t1", "t2"))

        with pytest.raises(ValueError):
            conversation.add_tool_results([ToolResultBlock(tool_use_id="t1", content="x")])
        with pytest.raises(ValueError):
            conversation.add_tool_results([
                ToolResultBlock(tool_use_id="t1", content="x"),
                ToolResultBlock(tool_use_id="t2", content="y"),
                ToolResultBlock(tool_use_id="t3", content="z"),
            ])

        conversation.add_tool_results([
            ToolResultBlock(tool_use_id="t2", content="y"),
            ToolResultBlock(tool_use_id="t1", content="x"),
        ])
        assert len(conversation) == 3

    def test_tool_results_must_follow_assistant(self):
        conversation = Conversation()
        conversation.add_user_text("hi")
        with pytest.raises(ValueError):
            conversation.add_tool_results([ToolResultBlock(tool_use_id="t1", content="x")])

    def test_user_text_may_follow_user_message(self):
        """A failed run leaves a trailing user message; the next send appends after it."""
        conversation = Conversation()
        conversation.add_user_text("first")
        conversation.add_user_text("second")
        assert [m.text for m in conversation] == ["first", "second"]

    def test_preserves_insertion_order(self):
        conversation = Conversation()
        conversation.add_user_text("q")
        conversation.add_assistant_turn(_assistant_with_tools("t1"))
        conversation.add_tool_results([ToolResultBlock(tool_use_id="t1", content="r")])
        conversation.add_assistant_turn([TextBlock(text="a")])
        assert [m.role for m in conversation] == [
            Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT,
        ]

    def test_clear_empties(self):
        conversation = Conversation()
        conversation.add_user_text("q")
        conversation.add_assistant_turn([TextBlock(text="a")])

        conversation.clear()
        conversation.add_user_text("fresh")

        assert len(conversation) == 1
        assert conversation[0].text == "fresh"

    def test_messages_is_a_snapshot(self):
        conversation = Conversation()
        conversation.add_user_text("q")
        snapshot = conversation.messages
        conversation.add_assistant_turn([TextBlock(text="a")])
        assert len(snapshot) == 1
