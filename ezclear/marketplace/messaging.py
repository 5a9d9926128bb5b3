"""
Messaging collaborator.

Submitting an application opens (or reuses) a conversation between the
applicant and the job owner and posts the application text into it. The
marketplace only needs these two calls from the messaging system.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple


def application_message(job_title: str, message: Optional[str]) -> str:
    """Text posted to the conversation when a worker applies."""
    if message:
        return f'Application for "{job_title}": {message}'
    return f'Application for "{job_title}"'


class ConversationGateway(Protocol):
    """Protocol for the messaging system."""

    def get_or_create_conversation(self, user1_id: str, user2_id: str) -> int:
        """Return the conversation between two users, creating it if needed.

        Participant order does not matter.
        """
        ...

    def send_message(self, conversation_id: int, sender_id: str, content: str) -> None:
        ...


@dataclass
class Message:
    conversation_id: int
    sender_id: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryConversationGateway:
    """In-memory messaging for testing."""

    def __init__(self):
        self._conversations: Dict[Tuple[str, str], int] = {}
        self.messages: List[Message] = []
        self._lock = threading.Lock()
        self._next_id = 1

    def get_or_create_conversation(self, user1_id: str, user2_id: str) -> int:
        key = tuple(sorted((user1_id, user2_id)))
        with self._lock:
            if key not in self._conversations:
                self._conversations[key] = self._next_id
                self._next_id += 1
            return self._conversations[key]

    def send_message(self, conversation_id: int, sender_id: str, content: str) -> None:
        if conversation_id not in self._conversations.values():
            raise KeyError(f"Conversation {conversation_id} not found")
        self.messages.append(Message(conversation_id, sender_id, content))

    def conversation_count(self) -> int:
        return len(self._conversations)
