import asyncio
from types import SimpleNamespace

import openai

from moodbuddy.services.ai_service import (
    AIProvider, AIService, EMPTY_COMPLETION_REPLY, FallbackResponseProvider
)


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(total_tokens=42)
        )


def online_service(completions):
    service = AIService()
    service.enabled = True
    service.openai_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    service.retry_delay = 0
    return service


def test_fallback_first_matching_rule_wins():
    provider = FallbackResponseProvider()

    assert provider.get_response("Hello, I feel sad").startswith("Hello there!")
    assert provider.get_response("I've been so anxious lately").startswith("Anxiety can feel overwhelming")
    assert provider.get_response("my boss keeps yelling").startswith("Work-related stress")


def test_fallback_matches_word_starts_only():
    provider = FallbackResponseProvider()

    assert provider.get_response("this weather") == FallbackResponseProvider.GENERIC_RESPONSE


def test_disabled_service_uses_fallback(offline_ai):
    response = asyncio.run(offline_ai.generate_response("I can't sleep, insomnia again"))

    assert response.provider == AIProvider.FALLBACK
    assert response.content.startswith("Sleep struggles")
    assert offline_ai.is_available() is False


def test_openai_response_uses_context_as_system_prompt():
    completions = FakeCompletions(content="  You are doing well.  ")
    service = online_service(completions)

    response = asyncio.run(service.generate_response("hi", "custom context"))

    assert response.provider == AIProvider.OPENAI
    assert response.content == "You are doing well."
    assert response.tokens_used == 42
    call = completions.calls[0]
    assert call["messages"][0] == {"role": "system", "content": "custom context"}
    assert call["model"] == service.config.ai.openai_model


def test_empty_completion_gets_apology():
    service = online_service(FakeCompletions(content=None))

    response = asyncio.run(service.generate_response("hello"))

    assert response.content == EMPTY_COMPLETION_REPLY


def test_provider_error_falls_back():
    service = online_service(FakeCompletions(error=openai.OpenAIError("boom")))

    response = asyncio.run(service.generate_response("thank you so much"))

    assert response.provider == AIProvider.FALLBACK
    assert response.content.startswith("Your gratitude")
    assert service.stats.failed_requests == 1
