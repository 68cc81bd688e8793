import logging
from typing import AsyncIterator

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You answer questions about a private document library.

Grounding:
- Build every answer only from the documents provided. Never bring in outside knowledge.
- When a question touches several documents, combine them into one answer. If one document describes a need and another a practice, connect them.
- Expand as far as the documents allow. Keep a warm, conversational tone.
- Do not cite sources; they are shown separately.
- Say "I don't have information about that in the available documents" only when the subject is absent from every document and nothing can be combined into a relevant answer.

Transformations:
- When asked to restructure, expand, reformat or schedule content (for example "add homework to that outline"), work only with your previous answer and the documents.
- If requested content (scripture, readings, assignments) is not in the documents, build the structure from what is available and briefly note which sections could use more material.
- Never ask the user to upload or select documents.

Document generation:
- When the user asks for a PDF, PowerPoint or Excel file, reply with a short confirmation. The file is produced separately."""

PROMPT_WITH_CONTEXT = """Available documents:

{context}

---
Question: {question}"""

PROMPT_WITHOUT_CONTEXT = """No document passages were retrieved for this message. Work only from the conversation so far.

Question: {question}"""


class OllamaClient:
    """LLM client for Ollama (OpenAI-compatible API)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5:7b",
        max_tokens: int = 1024,
        temperature: float = 0.1,
        history_messages: int = 6,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API URL.
            model: Model name.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            history_messages: History messages sent with each request.
        """
        self._client = AsyncOpenAI(base_url=base_url, api_key="ollama")
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._history_messages = history_messages

    def build_messages(
        self,
        user_message: str,
        context: str | None = None,
        history: list[dict] | None = None,
    ) -> list[dict]:
        """Build the chat completion message list."""
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]

        if history:
            messages.extend(history[-self._history_messages:])

        if context:
            prompt = PROMPT_WITH_CONTEXT.format(context=context, question=user_message)
        else:
            prompt = PROMPT_WITHOUT_CONTEXT.format(question=user_message)

        messages.append({"role": "user", "content": prompt})
        return messages

    async def chat_stream(
        self,
        user_message: str,
        context: str | None = None,
        history: list[dict] | None = None,
    ) -> AsyncIterator[str]:
        """Stream chat response.

        Args:
            user_message: User's message.
            context: Assembled document context.
            history: Chat history.

        Yields:
            Response tokens.
        """
        messages = self.build_messages(user_message, context, history)

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            stream=True,
        )

        async for chunk in response:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content
