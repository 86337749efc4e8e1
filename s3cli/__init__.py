"""
s3cli - sync local directories with S3.

Provides a CLI for directory synchronization and single-object
put/get/cp/mv/ls/del operations, with bounded-concurrency transfers
and a live progress line.
"""

__version__ = "1.0.0"
