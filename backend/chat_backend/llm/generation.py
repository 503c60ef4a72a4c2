"""
Generation calls against Ollama servers and the flows built on top of them.
"""
import logging
from typing import Optional

import requests

from ..document_processor.extractor import EMPTY_MESSAGE
from ..errors import GenerationError, NoActiveServerError
from ..models.chat import FileAttachment
from ..models.file import ChatFileRecord
from .connection import ConnectionManager
from .prompts import PromptKind, compose, document_prompt, file_info_prompt, image_prompt

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"
NO_RESPONSE = "No response generated"

NO_TEXT_MESSAGE = (
    "I couldn't extract any text content from this file. Please make sure the file contains "
    "readable text and is in a supported format (PDF, DOCX, TXT, etc.)."
)
NO_TEXT_TO_ANALYZE_MESSAGE = "I couldn't extract any text content from this file to analyze."
EXTRACTION_ISSUE_PREFIX = "There was an issue extracting text from this file: "
NO_SUMMARY_TEXT_MESSAGE = "I couldn't extract readable text from this file to create a summary."
NO_ANALYSIS_TEXT_MESSAGE = "I couldn't extract readable text from this file to perform an analysis."
QUESTION_ERROR_PREFIX = (
    "I encountered an error while processing your request about this file. "
    "Please try again or contact support if the issue persists. Error: "
)
CONTEXT_ERROR_MESSAGE = "I encountered an error while processing your request. Please try again."
SUMMARY_ERROR_MESSAGE = "I encountered an error while trying to summarize this file."
ANALYSIS_ERROR_MESSAGE = "I encountered an error while trying to analyze this file."


class GenerationClient:
    """Issues non-streaming generate calls through the connection manager."""

    def __init__(self, connections: ConnectionManager, default_model: str, timeout: float = 120.0):
        self.connections = connections
        self.default_model = default_model
        self.timeout = timeout

    def resolve_model(self, model: Optional[str]) -> str:
        return model if model and model.strip() else self.default_model

    def generate(self, prompt: str, model: Optional[str] = None, server_id: Optional[int] = None) -> str:
        """Send a prompt and return the ``response`` text of the reply."""
        handle = self.connections.resolve_optional(server_id)
        model_name = self.resolve_model(model)
        logger.info(
            "Generating with model %s on server %d, prompt length %d",
            model_name, handle.server_id, len(prompt),
        )

        try:
            response = handle.session.post(
                handle.base_url + GENERATE_PATH,
                json={"model": model_name, "prompt": prompt, "stream": False},
                headers=self.connections.build_headers(handle.server_id),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(f"Error calling Ollama API: {str(e)}")

        if not 200 <= response.status_code < 300:
            raise GenerationError(f"Ollama API returned status {response.status_code}: {response.text[:200]}")

        if not response.content or not response.content.strip():
            return NO_RESPONSE

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError(f"Invalid JSON from Ollama API: {str(e)}")

        if not isinstance(data, dict) or "response" not in data:
            raise GenerationError("Ollama API reply did not contain a 'response' field")

        if data["response"] is None:
            return NO_RESPONSE
        return str(data["response"])


class FileAssistant:
    """Question, summary and analysis flows over a file's stored extracted text.

    Failures come back as readable messages instead of exceptions.
    """

    def __init__(self, client: GenerationClient):
        self.client = client

    def ask(self, file: ChatFileRecord, question: str, model: Optional[str] = None,
            server_id: Optional[int] = None) -> str:
        logger.info("Generating response for file %d with question: %s", file.id, question)
        text = file.extracted_text
        if not text or not text.strip():
            return NO_TEXT_MESSAGE
        if not file.text_extraction_successful:
            return EXTRACTION_ISSUE_PREFIX + text

        prompt = compose(PromptKind.QUESTION, text, question, file.file_name)
        return self._dispatch(prompt, model, server_id, lambda e: QUESTION_ERROR_PREFIX + e.message)

    def ask_with_context(self, file: ChatFileRecord, question: str, context: Optional[str],
                         model: Optional[str] = None, server_id: Optional[int] = None) -> str:
        text = file.extracted_text
        if not text or not text.strip():
            return NO_TEXT_TO_ANALYZE_MESSAGE
        if not file.text_extraction_successful:
            return EXTRACTION_ISSUE_PREFIX + text

        prompt = compose(PromptKind.QUESTION_WITH_CONTEXT, text, question, file.file_name, context=context)
        return self._dispatch(prompt, model, server_id, lambda e: CONTEXT_ERROR_MESSAGE)

    def summarize(self, file: ChatFileRecord, model: Optional[str] = None,
                  server_id: Optional[int] = None) -> str:
        text = file.extracted_text
        if not text or not text.strip() or not file.text_extraction_successful:
            return NO_SUMMARY_TEXT_MESSAGE

        prompt = compose(PromptKind.SUMMARY, text, None, file.file_name)
        return self._dispatch(prompt, model, server_id, lambda e: SUMMARY_ERROR_MESSAGE)

    def analyze(self, file: ChatFileRecord, model: Optional[str] = None,
                server_id: Optional[int] = None) -> str:
        text = file.extracted_text
        if not text or not text.strip() or not file.text_extraction_successful:
            return NO_ANALYSIS_TEXT_MESSAGE

        prompt = compose(PromptKind.ANALYSIS, text, None, file.file_name, content_type=file.content_type)
        return self._dispatch(prompt, model, server_id, lambda e: ANALYSIS_ERROR_MESSAGE)

    def _dispatch(self, prompt, model, server_id, on_error) -> str:
        try:
            return self.client.generate(prompt, model=model, server_id=server_id)
        except (GenerationError, NoActiveServerError) as e:
            logger.error("File-assist generation failed: %s", e.message)
            return on_error(e)


def has_usable_text(file: ChatFileRecord) -> bool:
    text = file.extracted_text
    return bool(
        file.text_extraction_successful
        and text
        and text.strip()
        and text != EMPTY_MESSAGE
    )


class ChatGenerator:
    """Plain chat generation, optionally grounded on an attached file.

    Unlike the file-assist flows, errors propagate to the caller.
    """

    def __init__(self, client: GenerationClient):
        self.client = client

    def build_prompt(self, prompt: str, attachment: Optional[FileAttachment] = None,
                     file: Optional[ChatFileRecord] = None) -> str:
        if attachment is None:
            return prompt

        file_name = file.file_name if file else attachment.file_name
        content_type = file.content_type if file else attachment.content_type

        if file is not None and has_usable_text(file):
            return document_prompt(file_name, file.extracted_text, prompt)

        if content_type and content_type.startswith("image/"):
            return image_prompt(file_name, prompt)

        file_size = file.file_size if file else attachment.file_size
        return file_info_prompt(file_name, content_type, file_size, prompt)

    def generate_for_request(
        self,
        prompt: str,
        model: Optional[str] = None,
        attachment: Optional[FileAttachment] = None,
        server_id: Optional[int] = None,
        file: Optional[ChatFileRecord] = None,
    ) -> str:
        final_prompt = self.build_prompt(prompt, attachment, file)
        return self.client.generate(final_prompt, model=model, server_id=server_id)
