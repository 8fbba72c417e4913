"""Adapters for handing compiled requests to framework-specific clients.

Available adapters:
    - LangChainAdapter: Converts RequestMessages to LangChain messages.

Usage:
    ```python
    from chatcompile.adapters.langchain import LangChainAdapter

    adapter = LangChainAdapter()
    lc_messages = adapter.convert(await compiler.compile(messages, model))
    ```
"""

from chatcompile.adapters.protocol import RequestAdapter

__all__ = ["RequestAdapter"]
