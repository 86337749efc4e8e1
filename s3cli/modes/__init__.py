"""Command handlers for the s3cli CLI.

This package contains command-specific handlers that encapsulate
the workflow logic for each subcommand.

Subcommand handlers:
  - SyncHandler    → s3cli sync
  - ListHandler    → s3cli ls
  - DeleteHandler  → s3cli del
  - PutHandler     → s3cli put
  - GetHandler     → s3cli get
  - CopyHandler    → s3cli cp / s3cli mv
"""
from .base_handler import CommandHandler
from .sync_handler import SyncHandler
from .list_handler import ListHandler
from .delete_handler import DeleteHandler
from .put_handler import PutHandler
from .get_handler import GetHandler
from .copy_handler import CopyHandler

__all__ = [
    'CommandHandler',
    'SyncHandler',
    'ListHandler',
    'DeleteHandler',
    'PutHandler',
    'GetHandler',
    'CopyHandler',
]
