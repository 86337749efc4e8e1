"""Services for s3cli.

- resolver   - path/key normalization
- differ     - local vs remote reconciliation
- task_pool  - bounded-concurrency action execution
- progress   - thread-safe progress aggregation
- session    - sync/delete/transfer sessions tying them together
"""
from .differ import TreeDiffer
from .progress import ProgressAggregator, SessionPhase
from .resolver import KeyResolver, RemoteAddress, parse_s3_url
from .session import DeleteSession, SyncRequest, SyncSession, TransferSession
from .task_pool import TransferTaskPool

__all__ = [
    'TreeDiffer',
    'ProgressAggregator',
    'SessionPhase',
    'KeyResolver',
    'RemoteAddress',
    'parse_s3_url',
    'DeleteSession',
    'SyncRequest',
    'SyncSession',
    'TransferSession',
    'TransferTaskPool',
]
