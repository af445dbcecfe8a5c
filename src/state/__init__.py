"""
Shared store for extension state.

This package defines the in-memory schema the EBS client and the user
aggregator write into, plus the mutation/watch store around it. The user
aggregator lives in `state.user`.
"""

from .models import Auth, StoreState, UserState
from .store import Mutations, Store

__all__ = ["Auth", "Mutations", "Store", "StoreState", "UserState"]
