"""LangChain request adapter.

Converts compiled RequestMessages to LangChain messages (SystemMessage,
HumanMessage, AIMessage, ToolMessage).
"""

import logging
from typing import TYPE_CHECKING, Any

from chatcompile.models.parts import (
    FilePart,
    ImagePart,
    ReasoningPart,
    RequestMessage,
    TextPart,
    ToolCallPart,
    ToolResultOutput,
    ToolResultPart,
)
from chatcompile.tools import stringify_tool_output

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def _image_url(part: ImagePart) -> str:
    if part.media_type:
        return f"data:{part.media_type};base64,{part.image}"
    return part.image


def _tool_args(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    return {"input": value}


class LangChainAdapter:
    """Converts compiled request messages to LangChain messages.

    Usage:
        ```python
        from chatcompile.adapters.langchain import LangChainAdapter

        request = await compiler.compile(messages, model)
        lc_messages = LangChainAdapter().convert(request)
        response = await chat_model.ainvoke(lc_messages)
        ```

    Reasoning parts are carried in ``additional_kwargs["reasoning_content"]``.
    Inline tool results without a matching call get a synthesized call with
    empty arguments so every ToolMessage answers a tool call.
    """

    def convert(self, messages: list[RequestMessage]) -> list["BaseMessage"]:
        """Convert a list of request messages.

        Args:
            messages: Compiled request messages.

        Returns:
            Flattened list of LangChain BaseMessage objects.
        """
        converted: list["BaseMessage"] = []
        for message in messages:
            converted.extend(self.convert_single(message))
        return converted

    def convert_single(self, message: RequestMessage) -> list["BaseMessage"]:
        """Convert a single request message.

        Args:
            message: A compiled request message.

        Returns:
            LangChain messages; tool messages and assistant messages with
            inline results yield more than one.
        """
        from langchain_core.messages import HumanMessage, SystemMessage

        if message.role == "system":
            return [SystemMessage(content=self._text(message))]

        elif message.role == "user":
            if isinstance(message.content, str):
                return [HumanMessage(content=message.content)]
            return [HumanMessage(content=self._content_blocks(message))]

        elif message.role == "assistant":
            return self._convert_assistant(message)

        else:
            return [
                self._tool_message(part)
                for part in message.parts()
                if isinstance(part, ToolResultPart)
            ]

    def _text(self, message: RequestMessage) -> str:
        if isinstance(message.content, str):
            return message.content
        return "\n".join(p.text for p in message.content if isinstance(p, TextPart))

    def _content_blocks(self, message: RequestMessage) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = []
        for part in message.parts():
            if isinstance(part, TextPart):
                blocks.append({"type": "text", "text": part.text})
            elif isinstance(part, ImagePart):
                blocks.append({"type": "image_url", "image_url": {"url": _image_url(part)}})
            elif isinstance(part, FilePart):
                block: dict[str, Any] = {
                    "type": "file",
                    "source_type": "base64",
                    "mime_type": part.media_type,
                    "data": part.data,
                }
                if part.filename:
                    block["filename"] = part.filename
                blocks.append(block)
            else:
                logger.debug("skipping %s part in %s message", part.type, message.role)
        return blocks

    def _convert_assistant(self, message: RequestMessage) -> list["BaseMessage"]:
        from langchain_core.messages import AIMessage

        parts = message.parts()
        tool_calls: list[dict[str, Any]] = []
        results: list[ToolResultPart] = []
        reasoning: list[str] = []

        for part in parts:
            if isinstance(part, ToolCallPart):
                tool_calls.append(
                    {"id": part.tool_call_id, "name": part.tool_name, "args": _tool_args(part.input)}
                )
            elif isinstance(part, ToolResultPart):
                results.append(part)
            elif isinstance(part, ReasoningPart):
                reasoning.append(part.text)

        called = {call["id"] for call in tool_calls}
        for result in results:
            if result.tool_call_id not in called:
                tool_calls.append({"id": result.tool_call_id, "name": result.tool_name, "args": {}})
                called.add(result.tool_call_id)

        if any(isinstance(p, FilePart) for p in parts):
            content: str | list[Any] = self._content_blocks(message)
        else:
            content = self._text(message)

        additional_kwargs: dict[str, Any] = {}
        if reasoning:
            additional_kwargs["reasoning_content"] = "\n".join(reasoning)

        ai_message = AIMessage(
            content=content,
            tool_calls=tool_calls,
            additional_kwargs=additional_kwargs,
        )
        return [ai_message, *(self._tool_message(r) for r in results)]

    def _tool_message(self, part: ToolResultPart) -> "BaseMessage":
        from langchain_core.messages import ToolMessage

        output = part.output
        if isinstance(output, ToolResultOutput):
            status = "error" if output.type == "error-text" else "success"
            text = stringify_tool_output(output.value)
        else:
            status = "success"
            text = output

        return ToolMessage(
            content=text,
            tool_call_id=part.tool_call_id,
            name=part.tool_name,
            status=status,
        )
