"""Canonical request types produced by the compiler.

These mirror the provider-agnostic message shape most model SDKs accept:
a role plus either a plain string or an ordered list of typed parts.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """An image payload.

    ``image`` holds base64 data when ``media_type`` is set, otherwise a
    remote URL passed through untouched.
    """

    type: Literal["image"] = "image"
    image: str
    media_type: str | None = None


class FilePart(BaseModel):
    type: Literal["file"] = "file"
    data: str
    media_type: str
    filename: str | None = None


class ReasoningPart(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str


class ToolCallPart(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: Any = None


class ToolResultOutput(BaseModel):
    """Tagged tool output used by replayed tool history."""

    type: Literal["text", "json", "error-text"] = "text"
    value: Any


class ToolResultPart(BaseModel):
    """A tool result.

    ``output`` is the serialized result string for inline results and a
    ``ToolResultOutput`` for replayed history.
    """

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    output: str | ToolResultOutput


RequestPart = Annotated[
    Union[TextPart, ImagePart, FilePart, ReasoningPart, ToolCallPart, ToolResultPart],
    Field(discriminator="type"),
]


class FileHandle(BaseModel):
    """Opaque reference to a file uploaded to the provider out-of-band."""

    handle: str

    @classmethod
    def from_remote_id(cls, remote_id: str) -> "FileHandle":
        return cls(handle=f"fileid://{remote_id}")


class RequestMessage(BaseModel):
    """A compiled, provider-facing message."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[RequestPart]

    def parts(self) -> list[RequestPart]:
        """Return content as a part list, wrapping plain text in a TextPart."""
        if isinstance(self.content, str):
            return [TextPart(text=self.content)] if self.content else []
        return list(self.content)

    def has_content(self) -> bool:
        if isinstance(self.content, str):
            return bool(self.content.strip())
        return len(self.content) > 0
