"""
Domain exceptions and their HTTP status codes.
"""


class ChatBackendError(Exception):
    """Base class for errors that cross the API boundary."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ChatBackendError):
    status_code = 404


class ServerNotFoundError(NotFoundError):
    def __init__(self, server_id: int):
        super().__init__(f"Server not found: {server_id}")
        self.server_id = server_id


class ChatNotFoundError(NotFoundError):
    def __init__(self, chat_id: int):
        super().__init__(f"Chat not found: {chat_id}")
        self.chat_id = chat_id


class MessageNotFoundError(NotFoundError):
    def __init__(self, message_id: int):
        super().__init__(f"Message with ID {message_id} not found")
        self.message_id = message_id


class FileNotFoundInStoreError(NotFoundError):
    """Raised for a missing file row, or a row whose blob is gone from disk."""


class VoteNotFoundError(NotFoundError):
    def __init__(self, vote_id: int):
        super().__init__(f"Vote not found: {vote_id}")
        self.vote_id = vote_id


class UserNotFoundError(NotFoundError):
    pass


class NoActiveServerError(ChatBackendError):
    status_code = 503

    def __init__(self):
        super().__init__("No active Ollama server found")


class GenerationError(ChatBackendError):
    """Transport or parse failure while calling a backend LLM server."""
    status_code = 502


class AuthenticationError(ChatBackendError):
    status_code = 401


class PermissionDeniedError(ChatBackendError):
    status_code = 403


class ValidationError(ChatBackendError):
    status_code = 400


class ConflictError(ChatBackendError):
    status_code = 409
