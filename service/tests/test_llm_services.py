"""
Tests for summarization and language injection with a fake Anthropic client.
"""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from conftest import FakeFileSharing, StubBroker
from relaybot.errors import ErrorCode, RelayError, ServiceUnhealthy
from relaybot.services.language_injection import DOCUMENT_TITLE, LanguageInjector, split_sentences
from relaybot.services.result_dispatcher import ResultDispatcher
from relaybot.services.summarization import SummaryService, response_text


def text_response(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def api_error() -> anthropic.APIError:
    return anthropic.APIError("overloaded", httpx.Request("POST", "https://api.anthropic.com"), body=None)


class FakeMessages:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.reply(kwargs)


def fake_client(reply) -> SimpleNamespace:
    return SimpleNamespace(messages=FakeMessages(reply))


class TestSummaryService:
    @pytest.mark.asyncio
    async def test_prompt_and_transcript_are_sent(self):
        client = fake_client(lambda kwargs: text_response("  Итоги встречи  "))
        service = SummaryService("sk-ant", model="claude-test", max_tokens=100, client=client)

        summary = await service.summarize("we agreed on Friday", prompt="Summarize briefly")

        assert summary == "Итоги встречи"
        (call,) = client.messages.calls
        assert call["model"] == "claude-test"
        assert call["max_tokens"] == 100
        content = call["messages"][0]["content"]
        assert content.startswith("Summarize briefly")
        assert "<transcript>\nwe agreed on Friday\n</transcript>" in content

    @pytest.mark.asyncio
    async def test_api_error_becomes_relay_error(self):
        def reply(kwargs):
            raise api_error()

        service = SummaryService("sk-ant", model="m", max_tokens=10, client=fake_client(reply))

        with pytest.raises(RelayError) as exc_info:
            await service.summarize("text")

        assert exc_info.value.code is ErrorCode.SUBMISSION_FAILURE

    @pytest.mark.asyncio
    async def test_empty_summary(self):
        service = SummaryService("sk-ant", model="m", max_tokens=10, client=fake_client(lambda kwargs: text_response("")))

        with pytest.raises(RelayError) as exc_info:
            await service.summarize("text")

        assert exc_info.value.code is ErrorCode.EMPTY_RESULT

    def test_response_text_skips_other_blocks(self):
        response = SimpleNamespace(content=[
            SimpleNamespace(type="thinking", thinking="..."),
            SimpleNamespace(type="text", text="a"),
            SimpleNamespace(type="text", text="b"),
        ])
        assert response_text(response) == "ab"


class TestLanguageInjector:
    def test_split_sentences(self):
        assert split_sentences("Hello there. How are you? Fine!  ") == ["Hello there.", "How are you?", "Fine!"]

    @pytest.mark.asyncio
    async def test_document_pairs_each_sentence(self):
        client = fake_client(lambda kwargs: text_response("Ciao & benvenuto."))
        injector = LanguageInjector("key", "haiku", {1}, client=client)

        document = await injector.build_document("Hello <friend>. Welcome!")

        assert len(client.messages.calls) == 2
        assert f"<title>{DOCUMENT_TITLE}</title>" in document
        assert '<span class="english-text">Hello &lt;friend&gt;.</span>' in document
        assert document.count('<span class="italian-text">Ciao &amp; benvenuto.</span>') == 2
        assert ".italian-text" in document

    @pytest.mark.asyncio
    async def test_failed_sentence_is_left_untranslated(self):
        def reply(kwargs):
            if "Second" in kwargs["messages"][0]["content"]:
                raise api_error()
            return text_response("Prima.")

        injector = LanguageInjector("key", "haiku", {1}, client=fake_client(reply))

        document = await injector.build_document("First. Second.")

        assert "Second." in document
        assert document.count('class="italian-text"') == 1

    @pytest.mark.asyncio
    async def test_delivered_as_link(self, sender):
        files = FakeFileSharing("https://files/it")
        injector = LanguageInjector("key", "haiku", {1}, client=fake_client(lambda kwargs: text_response("Ciao.")))

        sent = await injector.inject(1, "Hello.", sender, ResultDispatcher(sender, files, StubBroker()))

        assert sent is True
        assert len(files.uploads) == 1
        assert sender.texts == [(f'<a href="https://files/it">{DOCUMENT_TITLE}</a>', "HTML")]
        assert sender.documents == []

    @pytest.mark.asyncio
    async def test_upload_failure_sends_document(self, sender):
        class Down(FakeFileSharing):
            async def check_health(self):
                raise ServiceUnhealthy("File sharing endpoint is down")

        injector = LanguageInjector("key", "haiku", {1}, client=fake_client(lambda kwargs: text_response("Ciao.")))

        sent = await injector.inject(1, "Hello.", sender, ResultDispatcher(sender, Down(), StubBroker()))

        assert sent is True
        ((document, caption),) = sender.documents
        assert caption == "Here's the translation file:"
        assert "Ciao." in document

    @pytest.mark.asyncio
    async def test_user_not_allowed(self, sender):
        client = fake_client(lambda kwargs: text_response("Ciao."))
        injector = LanguageInjector("key", "haiku", {1}, client=client)

        sent = await injector.inject(2, "Hello.", sender, ResultDispatcher(sender, FakeFileSharing(), StubBroker()))

        assert sent is False
        assert client.messages.calls == []
        assert sender.texts == []
