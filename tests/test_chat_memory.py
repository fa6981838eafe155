import pytest

from moodbuddy.core.models import MessageRole, ValidationError
from moodbuddy.services.chat_memory import ChatMemoryService


@pytest.fixture
def memory(repos):
    return ChatMemoryService(repos.conversations, repos.user_context)


def test_user_context_created_lazily(memory, repos):
    assert repos.user_context.get("u1") is None

    profile = memory.get_user_context("u1")

    assert profile.communication_style == "supportive"
    assert profile.mental_health_profile == {"concerns": [], "copingStrategies": [], "triggers": []}
    assert repos.user_context.get("u1") is not None


def test_current_conversation_is_reused(memory):
    first = memory.get_current_conversation("u1")
    second = memory.get_current_conversation("u1")

    assert first.id == second.id
    assert first.title.startswith("Chat - ")


def test_save_message_updates_conversation(memory, repos):
    conversation = memory.get_current_conversation("u1")

    message = memory.save_message(conversation.id, "u1", "user", "I'm stressed about work and feel sad")
    memory.save_message(conversation.id, "u1", MessageRole.USER, "Therapy helped, I feel better and happy")

    assert message.sentiment == "negative"
    assert message.topics == ["stress", "work"]

    updated = repos.conversations.get(conversation.id)
    assert updated.topics == ["stress", "work", "therapy"]
    assert updated.sentiment == "positive"
    assert updated.summary == "Discussed stress, work, therapy"


def test_recent_messages_newest_first(memory):
    conversation = memory.get_current_conversation("u1")
    for text in ("one", "two", "three"):
        memory.save_message(conversation.id, "u1", "user", text)

    messages = memory.get_recent_messages("u1", limit=2)

    assert [m.content for m in messages] == ["three", "two"]


def test_recent_messages_without_conversation(memory):
    assert memory.get_recent_messages("nobody") == []


def test_empty_message_rejected(memory):
    conversation = memory.get_current_conversation("u1")

    with pytest.raises(ValidationError):
        memory.save_message(conversation.id, "u1", "user", "   ")


def test_update_user_profile_merges_sections(memory):
    memory.update_user_profile("u1", preferences={"communicationStyle": "direct"})
    profile = memory.update_user_profile("u1", preferences={"topics": ["sleep"]},
                                         personal_details={"name": "Sam"})

    assert profile.preferences == {"communicationStyle": "direct", "topics": ["sleep"]}
    assert profile.personal_details == {"name": "Sam"}
    assert profile.concerns == []
