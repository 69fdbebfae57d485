"""Client-side SDK: session handling, synced application state and the AI chat"""

from .api_client import API_UNAVAILABLE, ApiClient, ApiResponse
from .auth_context import AuthContext
from .chat import GeminiChatAdapter
from .state import AppStateContainer
from .storage import LocalStorage

__all__ = [
    "API_UNAVAILABLE",
    "ApiClient",
    "ApiResponse",
    "AppStateContainer",
    "AuthContext",
    "GeminiChatAdapter",
    "LocalStorage",
]
