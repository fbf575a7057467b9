"""Remote store clients.

:class:`RemoteStore` is the contract the sync core consumes;
:class:`RtdbStore` implements it against the Firebase Realtime Database
REST API.
"""

from pyturbidity.store.base import RemoteStore, SubscriptionToken
from pyturbidity.store.rtdb import RtdbStore

__all__ = ["RemoteStore", "RtdbStore", "SubscriptionToken"]
