"""Tests for inline backend tags."""

import pytest

from relaychat.routing.models import Backend
from relaychat.routing.tags import count_words, extract_backend_tag


def extract(text):
    return extract_backend_tag(text, "@openai", "@webllm")


class TestExtractBackendTag:
    def test_no_tag(self):
        assert extract("What is the capital of France?") == (None, "What is the capital of France?")

    def test_remote_tag(self):
        assert extract("@openai Explain quantum computing") == (
            Backend.REMOTE,
            "Explain quantum computing",
        )

    def test_local_tag(self):
        assert extract("@webllm tell me a joke") == (Backend.LOCAL, "tell me a joke")

    @pytest.mark.parametrize("text", ["@OpenAI hi", "@OPENAI hi", "@openAI hi"])
    def test_case_insensitive(self, text):
        assert extract(text) == (Backend.REMOTE, "hi")

    def test_tag_mid_text_joined_with_single_space(self):
        assert extract("Tell me   @webllm   a story") == (Backend.LOCAL, "Tell me a story")

    def test_tag_at_end(self):
        assert extract("Summarize this @openai") == (Backend.REMOTE, "Summarize this")

    def test_remote_wins_when_both_present(self):
        backend, cleaned = extract("@webllm compare these @openai")
        assert backend == Backend.REMOTE
        assert cleaned == "compare these"

    def test_every_occurrence_removed(self):
        backend, cleaned = extract("@openai first @OpenAI second")
        assert backend == Backend.REMOTE
        assert "@openai" not in cleaned.lower()
        assert cleaned == "first second"

    def test_tag_only(self):
        assert extract("@openai") == (Backend.REMOTE, "")

    def test_custom_tags(self):
        assert extract_backend_tag("#cloud hi", "#cloud", "#edge") == (Backend.REMOTE, "hi")


class TestCountWords:
    def test_whitespace_separated(self):
        assert count_words("one  two\tthree\nfour") == 4

    def test_empty(self):
        assert count_words("   ") == 0
