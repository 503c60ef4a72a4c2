"""
Prompt templates for file-assisted generation.
"""
import re
from enum import Enum
from typing import Optional

TRUNCATION_MARKER = "\n\n[Content truncated due to length...]"

_THINK_TAG_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)


class PromptKind(str, Enum):
    QUESTION = "question"
    QUESTION_WITH_CONTEXT = "question_with_context"
    SUMMARY = "summary"
    ANALYSIS = "analysis"


CONTENT_LIMITS = {
    PromptKind.QUESTION: 15000,
    PromptKind.QUESTION_WITH_CONTEXT: 12000,
    PromptKind.SUMMARY: 18000,
    PromptKind.ANALYSIS: 18000,
}


def truncate_content(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters and append a visible marker."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def compose(
    kind: PromptKind,
    extracted_text: str,
    user_question: Optional[str],
    file_name: str,
    context: Optional[str] = None,
    content_type: Optional[str] = None,
) -> str:
    """Build the final prompt for one of the file-assist flows."""
    kind = PromptKind(kind)
    content = truncate_content(extracted_text, CONTENT_LIMITS[kind])

    if kind == PromptKind.QUESTION:
        return (
            f'I have uploaded a file named "{file_name}" with the following content:\n\n'
            "--- FILE CONTENT START ---\n"
            f"{content}"
            "\n--- FILE CONTENT END ---\n\n"
            "Based on this file content, please answer the following question:\n"
            f"{user_question}"
            "\n\nPlease provide a detailed and accurate response based on the file content. "
            "If the question cannot be answered from the file content, please mention that clearly."
        )

    if kind == PromptKind.QUESTION_WITH_CONTEXT:
        prompt = ""
        if context and context.strip():
            prompt += f"Previous conversation context:\n{context}\n\n"
        return prompt + (
            f'I have uploaded a file named "{file_name}" with the following content:\n\n'
            "--- FILE CONTENT START ---\n"
            f"{content}"
            "\n--- FILE CONTENT END ---\n\n"
            "Based on both the previous conversation and this file content, please answer:\n"
            f"{user_question}"
        )

    if kind == PromptKind.SUMMARY:
        return (
            f'Please provide a comprehensive summary of the following document "{file_name}":\n\n'
            "--- DOCUMENT CONTENT ---\n"
            f"{content}"
            "\n--- END DOCUMENT CONTENT ---\n\n"
            "Please provide:\n"
            "1. A brief overview of the document\n"
            "2. Key points and main topics covered\n"
            "3. Important conclusions or findings (if any)\n"
            "4. Any notable structure or organization\n\n"
            "Keep the summary clear, concise, and well-organized."
        )

    return (
        f'Please perform a detailed analysis of the following document "{file_name}" ({content_type}):\n\n'
        "--- DOCUMENT CONTENT ---\n"
        f"{content}"
        "\n--- END DOCUMENT CONTENT ---\n\n"
        "Please provide an analysis including:\n"
        "1. Document type and purpose\n"
        "2. Content structure and organization\n"
        "3. Key themes and topics\n"
        "4. Writing style and tone\n"
        "5. Any data, statistics, or evidence presented\n"
        "6. Main arguments or conclusions\n"
        "7. Target audience (if apparent)\n\n"
        "Be thorough but concise in your analysis."
    )


def document_prompt(file_name: str, content: str, prompt: str) -> str:
    return (
        "Based on the following document content, please answer the user's question.\n\n"
        f"Document: {file_name}\n"
        f"Content:\n{content}\n\n"
        f"User's question: {prompt}"
    )


def image_prompt(file_name: str, prompt: str) -> str:
    return (
        f"The user has uploaded an image file named '{file_name}'. "
        f"Please analyze this image and help them with their request: {prompt}"
    )


def file_info_prompt(file_name: str, content_type: Optional[str], file_size: Optional[int], prompt: str) -> str:
    return (
        "The user has uploaded a file with the following information:\n"
        f"- Filename: {file_name}\n"
        f"- File type: {content_type or 'unknown'}\n"
        f"- File size: {file_size if file_size is not None else 'unknown'} bytes\n\n"
        f"The user's prompt is: {prompt}"
    )


def remove_think_tags(text: Optional[str]) -> Optional[str]:
    """Strip <think>...</think> reasoning blocks from model output."""
    if text is None or not text.strip():
        return text
    cleaned = _THINK_TAG_PATTERN.sub("", text)
    cleaned = re.sub(r"\n\s*\n\s*\n", "\n\n", cleaned)
    return cleaned.strip()


def is_bot_message(message_type: Optional[str]) -> bool:
    return (message_type or "").lower() in ("bot", "assistant")
