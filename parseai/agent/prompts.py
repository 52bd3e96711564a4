"""Prompt text for the parse, answer and title flows."""

from collections.abc import Sequence

from parseai.models.schemas import HistoryItem

PARSE_INSTRUCTIONS = [
    "You are a document parsing expert.",
    "Your task is to extract the text content from the given document.",
    "Return the text only, preserving headings, lists and paragraph breaks.",
]

ANSWER_INSTRUCTIONS = [
    "You are a helpful AI assistant. Your responses should be informative and well-structured.",
    "When you are asked to generate code, you must wrap it in markdown-style triple backticks, "
    "specifying the language.",
]

TITLE_INSTRUCTIONS = [
    "Based on the user message, create a short and descriptive title for the chat session.",
    "The title should be 5 words or less and accurately reflect the main topic.",
    "Do not use quotes in the title.",
]

_DOCUMENT_RULES = (
    "You will answer the user's question based *only* on the content of the document "
    "provided below. If the answer is not found in the document, you must state that the "
    "information is not available in the provided text. You must also provide a brief "
    "explanation of your reasoning for the answer."
)
_IMAGE_RULES = "You will answer the user's question based on the provided image."
_GENERAL_RULES = "You will answer the user's question from your general knowledge."


def build_parse_prompt(inline_text: str | None = None) -> str:
    """Prompt for the parse flow.

    Text documents are inlined; binary documents travel as attached media.
    """
    if inline_text is None:
        return "Extract the text content from the attached document."
    return f"Extract the text content from this document.\n\nDocument:\n---\n{inline_text}\n---"


def build_answer_prompt(
    question: str,
    history: Sequence[HistoryItem] = (),
    document_content: str | None = None,
    has_image: bool = False,
) -> str:
    """Assemble the answer prompt.

    Document content takes precedence over an image, which takes precedence
    over general knowledge.
    """
    parts: list[str] = []

    if document_content:
        parts.append(f"{_DOCUMENT_RULES}\n\nDocument Content:\n---\n{document_content}\n---")
    elif has_image:
        parts.append(f"{_IMAGE_RULES}\nImage: (attached)")
    else:
        parts.append(_GENERAL_RULES)

    if history:
        lines = "\n".join(f"{item.role.value}: {item.content}" for item in history)
        parts.append(f"Here is the conversation history:\n{lines}")

    parts.append(f"Question: {question}")
    return "\n\n".join(parts)


def build_title_prompt(message: str) -> str:
    return f"Message: {message}"
