"""Thin wrapper around the Groq chat completion API."""

from typing import Any

from groq import AsyncGroq

from .errors import ExtractionFailure

DEFAULT_MODEL = "llama-3.1-70b-versatile"


class GroqChat:
    """Chat completion client used by the extractor, orchestrator and intro writer.

    Transport failures are raised as ExtractionFailure.

    Example:
        from groq import AsyncGroq
        from taskmate.llm import GroqChat

        chat = GroqChat(AsyncGroq(api_key="..."), model="llama-3.1-70b-versatile")
        text = await chat.complete([{"role": "user", "content": "hi"}])
    """

    def __init__(
        self,
        client: AsyncGroq,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    async def complete(
        self,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> str:
        """Send the messages and return the text of the first choice.

        Raises:
            ExtractionFailure: If the API call fails.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature if temperature is None else temperature,
            )
        except Exception as e:
            raise ExtractionFailure(f"Language model call failed: {e}") from e

        return response.choices[0].message.content or ""

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model


def create_chat(api_key: str | None, model: str = DEFAULT_MODEL) -> GroqChat | None:
    """Build a GroqChat, or None when no API key is configured."""
    if not api_key:
        return None
    return GroqChat(AsyncGroq(api_key=api_key), model=model)
