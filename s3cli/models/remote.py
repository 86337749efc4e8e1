"""
Records returned by the remote store client's listing calls
"""
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence


class RemoteObject(NamedTuple):
    key: str
    size: int
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


class ListingPage(NamedTuple):
    """One page of a prefix listing."""
    objects: List[RemoteObject]
    common_prefixes: Sequence[str] = ()
