from typing import Optional


class LLMBridgeError(Exception):
    """Base class for all llmbridge errors."""


class ConfigurationError(LLMBridgeError):
    """A provider or setting is missing or malformed."""


class InvalidMessageError(LLMBridgeError):
    """
    Canonical input that cannot be adapted (unknown role, missing tool call id,
    undecodable tool arguments).
    """


class EmptyConversationError(InvalidMessageError):
    """The conversation holds no turn to send."""


class VendorAPIError(LLMBridgeError):
    """
    Failure reported by a vendor SDK (network, auth, rate limit, ...).

    Attributes:
        provider: Name of the provider that raised.
        original: The exception raised by the vendor SDK.
    """

    def __init__(self, provider: str, message: str, original: Optional[BaseException] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.original = original


class ParseError(LLMBridgeError):
    """A vendor response did not have the expected shape."""


class StreamStateError(LLMBridgeError):
    """A stream accumulator was used after it completed."""
