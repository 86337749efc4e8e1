"""
Data models for s3cli
"""

from .entry import Entry, Origin
from .action import ActionKind, SyncAction, SyncDirection
from .outcome import OutcomeKind, SyncOutcome
from .remote import ListingPage, RemoteObject

__all__ = ['Entry', 'Origin', 'ActionKind', 'SyncAction', 'SyncDirection', 'OutcomeKind',
           'SyncOutcome', 'ListingPage', 'RemoteObject']
