import pytest

from eip_agent.schemas.chat import ChatMessage
from eip_agent.utils.prompts import (
    CONVERSATION_TEMPLATE,
    RETRIEVAL_TEMPLATE,
    format_chat_history,
    format_message,
    split_conversation,
)


def _conversation():
    return [
        ChatMessage(role="user", content="A"),
        ChatMessage(role="assistant", content="B"),
        ChatMessage(role="user", content="C"),
    ]


def test_format_message():
    assert format_message(ChatMessage(role="assistant", content="hi")) == "assistant: hi"


def test_split_conversation_renders_prior_turns_in_order():
    history, current = split_conversation(_conversation())
    assert history == "user: A\nassistant: B"
    assert current == "C"


def test_single_message_has_empty_history():
    history, current = split_conversation([ChatMessage(role="user", content="only")])
    assert history == ""
    assert current == "only"


def test_split_does_not_mutate_input():
    messages = _conversation()
    split_conversation(messages)
    split_conversation(messages)
    assert [m.content for m in messages] == ["A", "B", "C"]


def test_empty_conversation_raises():
    with pytest.raises(ValueError):
        split_conversation([])


def test_format_chat_history_empty():
    assert format_chat_history([]) == ""


def test_templates_expose_slots():
    assert "{chat_history}" in CONVERSATION_TEMPLATE
    assert "{input}" in CONVERSATION_TEMPLATE
    for slot in ("{context}", "{chat_history}", "{question}"):
        assert slot in RETRIEVAL_TEMPLATE
    assert "{input}" not in RETRIEVAL_TEMPLATE
