"""Protocol for request adapters."""

from typing import Any, Protocol

from chatcompile.models.parts import RequestMessage


class RequestAdapter(Protocol):
    """Protocol for converting compiled request messages to a framework format.

    Implementations convert the canonical RequestMessage sequence into the
    message types of a specific SDK or framework (LangChain, etc.).
    """

    def convert(self, messages: list[RequestMessage]) -> list[Any]:
        """Convert a compiled request message sequence.

        Args:
            messages: Output of a conversation compilation.

        Returns:
            List of framework-specific message objects.
        """
        ...

    def convert_single(self, message: RequestMessage) -> list[Any]:
        """Convert one request message.

        A single request message may map to several framework messages
        (e.g. one per tool result).

        Args:
            message: A compiled request message.

        Returns:
            List of framework-specific message objects.
        """
        ...
