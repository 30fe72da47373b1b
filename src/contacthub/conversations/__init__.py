from contacthub.conversations.models import PLACEHOLDER_CONTACT_NAME, Conversation

__all__ = ["Conversation", "PLACEHOLDER_CONTACT_NAME"]
