"""Resource endpoints of the chat server.

Each endpoint translates typed calls into requests on a shared
ChatHttpClient and decodes the responses into models:
- auth: signup, login, logout, session status
- identities: identity CRUD
- messages: message CRUD and filtered listing
- private_data: private data CRUD addressed by entity id
- friends: friend list management
"""

from .auth import AuthEndpoint, LoginStatus
from .base import UNSET, Endpoint
from .friends import FriendsEndpoint
from .identities import IdentitiesEndpoint
from .messages import MessagesEndpoint
from .private_data import PrivateDataEndpoint

__all__ = [
    "AuthEndpoint",
    "Endpoint",
    "FriendsEndpoint",
    "IdentitiesEndpoint",
    "LoginStatus",
    "MessagesEndpoint",
    "PrivateDataEndpoint",
    "UNSET",
]
