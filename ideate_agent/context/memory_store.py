"""Async in-memory conversation log implementing ConversationLog"""
from typing import Dict, List

from ideate_agent.core.interfaces import ConversationLog
from ideate_agent.core.types import ConversationTurn


class MemoryConversationLog(ConversationLog):
    def __init__(self):
        self.conversations: Dict[str, List[ConversationTurn]] = {}

    async def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        self.conversations.setdefault(conversation_id, []).append(turn)

    async def list(self, conversation_id: str) -> List[ConversationTurn]:
        # copy so callers never see later appends
        return list(self.conversations.get(conversation_id, []))

    async def clear(self, conversation_id: str) -> int:
        return len(self.conversations.pop(conversation_id, []))

    async def list_conversations(self) -> List[str]:
        return [cid for cid, turns in self.conversations.items() if turns]
