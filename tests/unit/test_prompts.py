"""Unit tests for prompt assembly."""

import pytest_check as check

from parseai.agent.prompts import build_answer_prompt, build_parse_prompt, build_title_prompt
from parseai.models.chat import MessageRole
from parseai.models.schemas import HistoryItem


class TestAnswerPrompt:
    """Tests for build_answer_prompt grounding precedence."""

    def test_document_takes_precedence_over_image(self) -> None:
        prompt = build_answer_prompt("Q?", document_content="Doc text", has_image=True)

        check.is_in("based *only* on the content of the document", prompt)
        check.is_in("Document Content:\n---\nDoc text\n---", prompt)
        check.is_not_in("provided image", prompt)

    def test_image_without_document(self) -> None:
        prompt = build_answer_prompt("Q?", has_image=True)

        check.is_in("based on the provided image", prompt)
        check.is_not_in("Document Content", prompt)

    def test_general_knowledge_fallback(self) -> None:
        prompt = build_answer_prompt("Q?")

        check.is_in("general knowledge", prompt)
        check.is_not_in("conversation history", prompt)

    def test_history_is_listed_in_order(self) -> None:
        history = [
            HistoryItem(role=MessageRole.USER, content="first"),
            HistoryItem(role=MessageRole.ASSISTANT, content="second"),
        ]

        prompt = build_answer_prompt("third?", history=history)

        check.is_in("Here is the conversation history:\nuser: first\nassistant: second", prompt)
        check.is_true(prompt.endswith("Question: third?"))


class TestOtherPrompts:
    def test_parse_prompt_inlines_text(self) -> None:
        check.is_in("---\nabc\n---", build_parse_prompt("abc"))
        check.is_in("attached document", build_parse_prompt())

    def test_title_prompt(self) -> None:
        assert build_title_prompt("Hello there") == "Message: Hello there"
