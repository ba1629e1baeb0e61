"""Async client library for the chat server."""

from .client import ChatClient
from .config import ClientConfig, ConfigError, load_config
from .errors import (
    ChatClientError,
    ChatConnectionError,
    ChatHandshakeError,
    ChatNotFoundError,
    ChatResponseError,
    ChatTimeout,
    ChatValidationError,
)
from .events import (
    AuthErrorEvent,
    EventEmitter,
    EventType,
    LoginEvent,
    LogoutEvent,
    MessageEvent,
)
from .filters import MatchPolicy, MessageQuery
from .models import Account, Identity, Message, PrivateData
from .realtime import RealtimeManager, SubscriptionState

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AuthErrorEvent",
    "ChatClient",
    "ChatClientError",
    "ChatConnectionError",
    "ChatHandshakeError",
    "ChatNotFoundError",
    "ChatResponseError",
    "ChatTimeout",
    "ChatValidationError",
    "ClientConfig",
    "ConfigError",
    "EventEmitter",
    "EventType",
    "Identity",
    "LoginEvent",
    "LogoutEvent",
    "MatchPolicy",
    "Message",
    "MessageEvent",
    "MessageQuery",
    "PrivateData",
    "RealtimeManager",
    "SubscriptionState",
    "load_config",
]
