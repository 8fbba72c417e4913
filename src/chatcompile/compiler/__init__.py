from chatcompile.compiler.conversation import ConversationCompiler, compile_conversation
from chatcompile.compiler.message import CompiledMessage, MessageCompiler

__all__ = [
    "CompiledMessage",
    "ConversationCompiler",
    "MessageCompiler",
    "compile_conversation",
]
