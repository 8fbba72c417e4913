"""Tool call / tool result pairing.

Two shapes exist for putting tool activity into a request:

- Inline: tool blocks become tool-call / tool-result parts of the assistant
  message itself. ``ToolPairing`` selects whether a block with both arguments
  and a result yields one part (the result) or both.
- Replay: the raw invocation records of a message become a synthetic
  assistant turn with every call, followed by a tool turn with every
  finished result.
"""

import json
import logging
import secrets
import string
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from chatcompile.models.blocks import ToolBlock, ToolResponse
from chatcompile.models.parts import (
    RequestMessage,
    ToolCallPart,
    ToolResultOutput,
    ToolResultPart,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"done", "error", "cancelled"})
ERROR_STATUSES = frozenset({"error", "cancelled"})

_ID_ALPHABET = string.ascii_lowercase + string.digits


class ToolPairing(str, Enum):
    """How an inline tool block maps to parts."""

    PREFER_RESULT = "prefer_result"
    INDEPENDENT = "independent"


class AssistantToolMode(str, Enum):
    """Where an assistant message's tool activity goes."""

    INLINE = "inline"
    REPLAY = "replay"


def generate_tool_call_id() -> str:
    """Synthesize a tool call id of the form ``tool_<millis>_<9 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"tool_{int(time.time() * 1000)}_{suffix}"


class ToolIdCache:
    """Tool call ids synthesized during one compilation, keyed by block id.

    Blocks carrying their own ``tool_id`` bypass the cache. Each top-level
    compilation owns one cache and clears it when done.
    """

    def __init__(self, id_factory: Callable[[], str] = generate_tool_call_id) -> None:
        self._id_factory = id_factory
        self._ids: dict[str, str] = {}

    def resolve(self, block: ToolBlock) -> str:
        if block.tool_id:
            return block.tool_id
        call_id = self._ids.get(block.id)
        if call_id is None:
            call_id = self._id_factory()
            self._ids[block.id] = call_id
            logger.debug("synthesized tool_call_id=%s for block=%s", call_id, block.id)
        return call_id

    def clear(self) -> None:
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._ids


def stringify_tool_output(value: Any) -> str:
    """Serialize a tool result to text.

    Strings pass through verbatim; anything else becomes compact JSON with
    key order preserved, or ``str(value)`` if it is not JSON serializable.
    """
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def parse_tool_arguments(value: Any) -> Any:
    """Decode JSON-string arguments, leaving anything else as given."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def has_result(block: ToolBlock) -> bool:
    return block.content is not None and block.content != ""


def has_arguments(block: ToolBlock) -> bool:
    return bool(block.arguments)


def _call_part(block: ToolBlock, call_id: str, tool_name: str) -> ToolCallPart:
    return ToolCallPart(tool_call_id=call_id, tool_name=tool_name, input=block.arguments)


def _result_part(block: ToolBlock, call_id: str, tool_name: str) -> ToolResultPart:
    return ToolResultPart(
        tool_call_id=call_id,
        tool_name=tool_name,
        output=stringify_tool_output(block.content),
    )


def pair_tool_block(
    block: ToolBlock,
    ids: ToolIdCache,
    *,
    pairing: ToolPairing = ToolPairing.PREFER_RESULT,
    unknown_tool_name: str = "unknown",
) -> list[ToolCallPart | ToolResultPart]:
    """Convert one tool block into inline parts.

    Args:
        block: The tool block.
        ids: Id cache of the running compilation.
        pairing: PREFER_RESULT emits the result alone when both a result and
            arguments are present; INDEPENDENT emits the call, then the result.
        unknown_tool_name: Name used when the block has none.

    Returns:
        Zero, one or two parts. A call always precedes its result.
    """
    with_result = has_result(block)
    with_args = has_arguments(block)
    if not with_result and not with_args:
        return []

    call_id = ids.resolve(block)
    tool_name = block.tool_name or unknown_tool_name

    if pairing is ToolPairing.PREFER_RESULT:
        if with_result:
            return [_result_part(block, call_id, tool_name)]
        return [_call_part(block, call_id, tool_name)]

    parts: list[ToolCallPart | ToolResultPart] = []
    if with_args:
        parts.append(_call_part(block, call_id, tool_name))
    if with_result:
        parts.append(_result_part(block, call_id, tool_name))
    return parts


def tool_result_parts(
    blocks: Sequence[ToolBlock],
    ids: ToolIdCache,
    *,
    unknown_tool_name: str = "unknown",
) -> list[ToolResultPart]:
    """Build the results of a tool-role message.

    Blocks without a result payload are skipped with a warning.
    """
    parts: list[ToolResultPart] = []
    for block in blocks:
        if not has_result(block):
            logger.warning("Skipping tool block %s without result content", block.id)
            continue
        parts.append(
            _result_part(block, ids.resolve(block), block.tool_name or unknown_tool_name)
        )
    return parts


def _record_call_id(record: ToolResponse) -> str:
    return record.tool_call_id or record.id


def _record_tool_name(record: ToolResponse, unknown_tool_name: str) -> str:
    return record.tool.name or record.tool_name or unknown_tool_name


def _record_output(record: ToolResponse) -> ToolResultOutput:
    kind = "error-text" if record.status in ERROR_STATUSES else "text"
    if record.status == "cancelled" and record.response is None:
        return ToolResultOutput(type=kind, value="cancelled")
    return ToolResultOutput(type=kind, value=stringify_tool_output(record.response))


def build_tool_history(
    blocks: Sequence[ToolBlock],
    *,
    unknown_tool_name: str = "unknown",
) -> list[RequestMessage]:
    """Replay a message's client-side tool invocations as conversation turns.

    Provider-executed tools are skipped. The output is at most one assistant
    message holding every tool call, followed by at most one tool message
    holding the results of invocations in a terminal state.
    """
    records = [
        block.metadata.raw_tool_response
        for block in blocks
        if block.metadata.raw_tool_response is not None
    ]
    replayable = [r for r in records if r.tool.type != "provider"]
    if not replayable:
        return []

    calls = [
        ToolCallPart(
            tool_call_id=_record_call_id(r),
            tool_name=_record_tool_name(r, unknown_tool_name),
            input=parse_tool_arguments(r.arguments),
        )
        for r in replayable
    ]
    results = [
        ToolResultPart(
            tool_call_id=_record_call_id(r),
            tool_name=_record_tool_name(r, unknown_tool_name),
            output=_record_output(r),
        )
        for r in replayable
        if r.status in TERMINAL_STATUSES
    ]

    logger.debug(
        "replaying tool history calls=%d results=%d skipped_provider=%d",
        len(calls),
        len(results),
        len(records) - len(replayable),
    )

    history = [RequestMessage(role="assistant", content=calls)]
    if results:
        history.append(RequestMessage(role="tool", content=results))
    return history
