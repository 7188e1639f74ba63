"""
Downstream HR API integration: token lifecycle and authenticated requests.
"""

from workforce_sync.downstream.client import DownstreamClient
from workforce_sync.downstream.token_manager import TokenLifecycleManager, TokenState

__all__ = [
    "DownstreamClient",
    "TokenLifecycleManager",
    "TokenState",
]
