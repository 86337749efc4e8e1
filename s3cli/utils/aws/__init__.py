"""AWS utilities sub-package.

Contains boto3 session and S3 client construction.
"""
from .aws_utils import (
    build_botocore_config,
    create_boto3_session,
    create_s3_client,
)

__all__ = [
    'build_botocore_config',
    'create_boto3_session',
    'create_s3_client',
]
