"""HTTP clients for the remote chat and analysis services."""

from .analysis import AnalysisClient, ConversationAnalyzer
from .base import ApiClient
from .chat import ChatClient, ConversationCreator

__all__ = [
    "ApiClient",
    "AnalysisClient",
    "ChatClient",
    "ConversationAnalyzer",
    "ConversationCreator",
]
