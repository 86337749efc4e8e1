"""
AWS S3 store client package.

- :mod:`store_client` - listing, transfer and deletion primitives on boto3
"""
from .store_client import S3StoreClient

__all__ = [
    'S3StoreClient',
]
