from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VISION_PATTERNS = [
    r"gpt-4o",
    r"gpt-4\.1",
    r"gpt-5",
    r"o[34]",
    r"claude-3",
    r"claude-(sonnet|opus|haiku)",
    r"gemini",
    r"qwen.*vl",
    r"llava",
    r"pixtral",
    r"vision",
]

DEFAULT_IMAGE_ENHANCEMENT_PATTERNS = [
    r"grok-2-image",
    r"gpt-image",
    r"gemini-.*-image",
    r"qwen-image-edit",
    r"seededit",
    r"kontext",
]


class CompilerConfig(BaseSettings):
    """Configuration for conversation compilation.

    Settings can be provided via environment variables with CHATCOMPILE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHATCOMPILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Tool pairing for inline assistant compilation:
    # "prefer_result" emits one part per block, "independent" emits call + result
    tool_pairing: Literal["prefer_result", "independent"] = "prefer_result"

    # "inline" embeds tool parts in the assistant message,
    # "replay" rebuilds them as synthetic assistant/tool turns
    assistant_tool_mode: Literal["inline", "replay"] = "inline"

    # Placeholder name for tool blocks that carry none
    unknown_tool_name: str = "unknown"

    default_image_media_type: str = "image/png"

    # Minimum conversation length before the image-enhancement override applies
    enhancement_min_messages: int = Field(default=3, ge=2)

    # Concurrent block reads per message
    max_concurrency: int = Field(default=4, ge=1)

    # Regexes matched against model ids when a ModelSpec does not declare the flag
    vision_model_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VISION_PATTERNS)
    )
    image_enhancement_model_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_ENHANCEMENT_PATTERNS)
    )

    # Truncate extracted file text to this many characters (None = no limit)
    text_extraction_max_chars: int | None = Field(default=None, ge=1)
