"""Errors raised by the comment thread services.

Routers translate these into HTTP responses; nothing here knows about HTTP.
"""


class ThreadingError(Exception):
    """Base error for comment thread operations."""

    code = "threading_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QuotaExceeded(ThreadingError):
    """Participant already used every comment allowed in the thread."""

    code = "quota_exceeded"

    def __init__(self, post_id: int, participant: str, limit: int):
        super().__init__(f"{participant} reached the limit of {limit} comments on post {post_id}")
        self.post_id = post_id
        self.limit = limit


class NotAuthorized(ThreadingError):
    """Someone other than the post author tried to write an author reply."""

    code = "not_authorized"


class InvalidContent(ThreadingError):
    code = "invalid_content"


class PostNotFound(ThreadingError):
    code = "post_not_found"

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class ThreadNotFound(ThreadingError):
    code = "thread_not_found"


class StoreUnavailable(ThreadingError):
    """The underlying store failed or timed out."""

    code = "store_unavailable"


class NotificationFailure(ThreadingError):
    """Recording a notification failed after the comment was already stored."""

    code = "notification_failure"
