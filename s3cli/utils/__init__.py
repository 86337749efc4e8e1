"""Utility modules for s3cli.

Sub-packages:
- display/ - report helpers and the live status line
- aws/ - boto3 session and client construction
"""

from .config_loader import ClientConfig, ConfigLoader
from .file_utils import ensure_dir, guess_content_type, remove_file
from .logger import setup_logging

__all__ = [
    'ClientConfig',
    'ConfigLoader',
    'ensure_dir',
    'guess_content_type',
    'remove_file',
    'setup_logging',
]
