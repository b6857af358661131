"""Error taxonomy shared by the conversation core, tools and scheduler."""


class TaskmateError(Exception):
    """Base class for errors that can be reported back to a chat user."""

    user_message = "Something went wrong, please try again later."

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(TaskmateError):
    """A required field is missing or invalid (empty title, bad task id...)."""

    def __init__(self, message: str, user_message: str | None = None) -> None:
        # Validation messages are specific enough to show as-is
        super().__init__(message, user_message or message)


class ExtractionFailure(TaskmateError):
    """The language model failed or returned unusable output."""

    user_message = "I couldn't understand that, please try rephrasing."


class ToolDispatchError(TaskmateError):
    """A tool call could not be dispatched (unknown tool, bad payload, handler error)."""

    user_message = "That action could not be completed."


class PersistenceError(TaskmateError):
    """The task store is unavailable or rejected the operation."""

    user_message = "Saving the task failed, please try again later."


class DeliveryError(TaskmateError):
    """A message or reminder could not be delivered to the chat platform."""

    user_message = "I couldn't deliver that message."
