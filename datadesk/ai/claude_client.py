"""
Anthropic Claude client for the analyst agent.

stream_with_tools() runs the native tool-use loop against a ToolRegistry:
text is streamed as it arrives, tool calls are executed between rounds and
their results fed back until Claude stops asking for tools.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Union

import anthropic

from ..config import settings
from ..exceptions import ServiceUnavailableError
from .prompts import DATA_ANALYST_PROMPT

logger = logging.getLogger(__name__)

# Rate-limit windows reset every 60s, so 429s wait longer than overloads
_RATE_LIMIT_RETRY_DELAYS = [30.0, 60.0]


@dataclass
class TextChunk:
    """A partial text delta from Claude."""
    text: str


@dataclass
class ToolResultChunk:
    """A tool call Claude made and the JSON result it got back."""
    tool_name: str
    tool_use_id: str
    result: str
    tool_input: dict = field(default_factory=dict)


@dataclass
class ToolTurnComplete:
    """
    End of one tool round. Holds the assistant and tool_result blocks that
    were appended to the conversation.
    """
    assistant_blocks: list[dict]
    tool_result_blocks: list[dict]


StreamEvent = Union[TextChunk, ToolResultChunk, ToolTurnComplete]


def _retry_delay(exc: anthropic.APIStatusError, attempt: int) -> float | None:
    """Seconds to wait before retrying, or None if the error is not retryable."""
    if isinstance(exc, anthropic.RateLimitError):
        return _RATE_LIMIT_RETRY_DELAYS[min(attempt, len(_RATE_LIMIT_RETRY_DELAYS) - 1)]
    if exc.status_code >= 500:
        return settings.claude_retry_base_delay * (2 ** attempt)
    return None


def _blocks(message) -> tuple[list[dict], list[dict]]:
    """Split a final message into assistant content blocks and its tool_use blocks."""
    content: list[dict] = []
    tool_uses: list[dict] = []
    for block in message.content:
        if block.type == "text":
            content.append({"type": "text", "text": block.text})
        elif block.type == "tool_use":
            tool_use = {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
            content.append(tool_use)
            tool_uses.append(tool_use)
    return content, tool_uses


class ClaudeClient:
    def __init__(self, api_key: str | None = None) -> None:
        self._client = anthropic.AsyncAnthropic(api_key=api_key or settings.anthropic_api_key)

    async def stream_with_tools(
        self,
        messages: list[dict],
        tool_registry,
        model: str | None = None,
        system: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Stream Claude's reply, run the tools it asks for and continue until it
        answers without tools or CLAUDE_MAX_TOOL_ITERATIONS rounds have run.

        429 and 5xx errors surface when the stream is opened, before any text
        is yielded, so a round is retried as a whole.
        """
        model = model or settings.model_complex
        system_prompt = system if system is not None else DATA_ANALYST_PROMPT
        max_retries = settings.claude_max_retries
        max_iterations = settings.claude_max_tool_iterations
        working_messages = list(messages)

        for iteration in range(max_iterations):
            logger.debug(
                "stream_with_tools round %d/%d, messages=%d",
                iteration + 1, max_iterations, len(working_messages),
            )

            for attempt in range(max_retries):
                try:
                    async with self._client.messages.stream(
                        model=model,
                        max_tokens=settings.anthropic_max_tokens,
                        system=system_prompt,
                        messages=working_messages,
                        tools=tool_registry.schemas,
                    ) as stream:
                        async for event in stream:
                            if getattr(event, "type", None) != "content_block_delta":
                                continue
                            delta = event.delta
                            if getattr(delta, "type", None) == "text_delta":
                                yield TextChunk(text=delta.text)
                        final_msg = await stream.get_final_message()
                    break
                except anthropic.APIStatusError as e:
                    delay = _retry_delay(e, attempt)
                    if delay is None or attempt == max_retries - 1:
                        raise
                    logger.warning(
                        "Anthropic error %d (attempt %d/%d), retrying in %.1fs",
                        e.status_code, attempt + 1, max_retries, delay,
                    )
                    await asyncio.sleep(delay)

            assistant_blocks, tool_uses = _blocks(final_msg)
            if final_msg.stop_reason != "tool_use" or not tool_uses:
                return

            tool_result_blocks: list[dict] = []
            for tool_use in tool_uses:
                logger.info("Executing tool %s (id=%s)", tool_use["name"], tool_use["id"])
                # dispatch() turns failures into error results itself
                result = await tool_registry.dispatch(tool_use["name"], tool_use["input"])
                yield ToolResultChunk(
                    tool_name=tool_use["name"],
                    tool_use_id=tool_use["id"],
                    result=result,
                    tool_input=tool_use["input"],
                )
                tool_result_blocks.append({
                    "type": "tool_result",
                    "tool_use_id": tool_use["id"],
                    "content": result,
                })

            yield ToolTurnComplete(
                assistant_blocks=assistant_blocks,
                tool_result_blocks=tool_result_blocks,
            )
            working_messages.append({"role": "assistant", "content": assistant_blocks})
            working_messages.append({"role": "user", "content": tool_result_blocks})

        logger.warning("stream_with_tools hit max iterations (%d)", max_iterations)

    async def ask(self, question: str, tool_registry, model: str | None = None) -> str:
        """Run one question through the tool loop and return the final text."""
        parts: list[str] = []
        try:
            async for event in self.stream_with_tools(
                [{"role": "user", "content": question}], tool_registry, model=model
            ):
                if isinstance(event, TextChunk):
                    parts.append(event.text)
                elif isinstance(event, ToolTurnComplete):
                    parts.clear()  # keep only the text after the last tool round
        except (
            anthropic.APIConnectionError,
            anthropic.RateLimitError,
            anthropic.InternalServerError,
        ) as e:
            raise ServiceUnavailableError(f"Claude is unavailable: {e}") from e
        return "".join(parts).strip()
