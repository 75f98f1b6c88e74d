from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..errors import EmptyConversationError, InvalidMessageError
from ..types import CanonicalMessage, ToolSchema, VendorPayload
from ..utils import MessageLike, ToolLike, coerce_tool, extract_system_prompt, validate_messages


class BaseAdapter(ABC):
    """
    Abstract base class for canonical-to-vendor adapters.

    Adapters are pure: the same input always yields the same payload, and
    nothing is sent over the network.
    """

    provider_name: str = ""

    def adapt(
        self,
        messages: Iterable[MessageLike],
        system_prompt: Optional[str] = None,
        tools: Optional[Sequence[ToolLike]] = None,
    ) -> VendorPayload:
        """
        Convert a canonical conversation into this vendor's request shape.

        Args:
            messages: Ordered conversation turns (CanonicalMessage or dicts).
            system_prompt (str, optional): Used only when the conversation
                holds no system message.
            tools (Sequence, optional): Tool schemas the model may call.

        Returns:
            VendorPayload: Vendor-native turns, system instruction and tools.

        Raises:
            EmptyConversationError: If there is no turn to send.
            InvalidMessageError: If a message cannot be represented.
        """
        canonical = validate_messages(messages)
        system = extract_system_prompt(canonical, system_prompt)

        turns = [m for m in canonical if m.role != "system"]
        if not turns:
            raise EmptyConversationError("Conversation holds only system messages")

        converted = self.convert_messages(turns, system)
        vendor_tools = self.convert_tools([coerce_tool(t) for t in tools]) if tools else None

        return VendorPayload(
            provider=self.provider_name,
            messages=converted,
            system=system,
            tools=vendor_tools,
        )

    def convert_messages(
        self,
        messages: List[CanonicalMessage],
        system: Optional[str],
    ) -> List[Dict[str, Any]]:
        """
        Convert non-system turns, one role handler at a time.
        """
        converted: List[Dict[str, Any]] = []
        for msg in messages:
            if msg.role == "user":
                self._append(converted, self.convert_user(msg))
            elif msg.role == "assistant":
                self._append(converted, self.convert_assistant(msg))
            elif msg.role == "tool":
                self._append(converted, self.convert_tool_result(msg, messages))
            else:
                raise InvalidMessageError(f"Invalid message role {msg.role!r}")
        return converted

    def _append(self, converted: List[Dict[str, Any]], item: Dict[str, Any]) -> None:
        converted.append(item)

    @abstractmethod
    def convert_user(self, message: CanonicalMessage) -> Dict[str, Any]:
        pass

    @abstractmethod
    def convert_assistant(self, message: CanonicalMessage) -> Dict[str, Any]:
        pass

    @abstractmethod
    def convert_tool_result(
        self,
        message: CanonicalMessage,
        conversation: List[CanonicalMessage],
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def convert_tools(self, tools: List[ToolSchema]) -> List[Dict[str, Any]]:
        pass

    @staticmethod
    def require_tool_call_id(message: CanonicalMessage) -> str:
        tool_call_id = (message.tool_call_id or "").strip()
        if not tool_call_id:
            raise InvalidMessageError("Tool message missing tool_call_id")
        return tool_call_id
