from .session import ChatSession, generate_conversation_title, truncate_text

__all__ = ["ChatSession", "generate_conversation_title", "truncate_text"]
