"""CLI entry point: compile a stored conversation and print the request."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from chatcompile.blocks import InMemoryBlockStore
from chatcompile.compiler.conversation import ConversationCompiler
from chatcompile.config import CompilerConfig
from chatcompile.models.blocks import ContentBlock, Message
from chatcompile.models.model import ModelSpec

_messages_adapter = TypeAdapter(list[Message])
_blocks_adapter = TypeAdapter(list[ContentBlock])


def load_conversation(path: Path) -> tuple[list[Message], InMemoryBlockStore]:
    """Load ``{"messages": [...], "blocks": [...]}`` from a JSON file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    messages = _messages_adapter.validate_python(data.get("messages", []))
    blocks = _blocks_adapter.validate_python(data.get("blocks", []))
    return messages, InMemoryBlockStore(blocks)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatcompile",
        description="Compile block-based conversations into model request messages",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    compile_parser = sub.add_parser("compile", help="Compile a conversation JSON file")
    compile_parser.add_argument("path", type=Path, help="Conversation JSON file")
    compile_parser.add_argument("--model", required=True, help="Target model id")
    compile_parser.add_argument("--provider", default="openai", help="Target provider id")
    compile_parser.add_argument(
        "--vision",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force vision support on or off (default: detect from model id)",
    )
    compile_parser.add_argument(
        "--image-enhancement",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force image-enhancement handling on or off (default: detect from model id)",
    )
    compile_parser.add_argument(
        "--native-file-type",
        action="append",
        default=[],
        metavar="MEDIA_TYPE",
        help="Media type the model ingests natively (repeatable)",
    )
    compile_parser.add_argument(
        "--pairing",
        choices=["prefer_result", "independent"],
        default=None,
        help="Inline tool pairing strategy",
    )
    compile_parser.add_argument(
        "--tool-mode",
        choices=["inline", "replay"],
        default=None,
        help="Assistant tool handling",
    )
    return parser


async def run_compile(args: argparse.Namespace) -> list[dict]:
    messages, store = load_conversation(args.path)
    model = ModelSpec(
        id=args.model,
        provider=args.provider,
        vision=args.vision,
        image_enhancement=args.image_enhancement,
        native_file_types=args.native_file_type,
    )
    compiler = ConversationCompiler(
        store,
        config=CompilerConfig(),
        tool_pairing=args.pairing,
        assistant_tool_mode=args.tool_mode,
    )
    request = await compiler.compile(messages, model)
    return [m.model_dump(mode="json", exclude_none=True) for m in request]


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "compile":
        try:
            output = asyncio.run(run_compile(args))
        except (OSError, ValueError, ValidationError) as exc:
            print(f"Error: cannot load {args.path}: {exc}", file=sys.stderr)
            raise SystemExit(1)
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
