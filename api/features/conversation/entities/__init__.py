from api.features.conversation.entities.message import Message, MessageRole

__all__ = ["Message", "MessageRole"]
