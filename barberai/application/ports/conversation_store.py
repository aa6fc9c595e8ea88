from abc import ABC, abstractmethod

from barberai.domain.entities.conversation_state import ConversationState
from barberai.domain.entities.message import Message


class ConversationStorePort(ABC):
    @abstractmethod
    def has_conversation(self, conversation_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_history(self, conversation_id: str) -> list[Message]:
        raise NotImplementedError

    @abstractmethod
    def append_messages(self, conversation_id: str, messages: list[Message]) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_state(self, conversation_id: str) -> ConversationState:
        raise NotImplementedError

    @abstractmethod
    def set_state(self, conversation_id: str, state: ConversationState) -> None:
        raise NotImplementedError
