"""AWS utilities for session and client creation.

The client configuration (connection pool size, TLS toggle, timeouts) comes
from an explicit ClientConfig instead of process-wide HTTP agent settings.
"""
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig


def build_botocore_config(config) -> BotoConfig:
    """Translate a ClientConfig into a botocore Config.

    Args:
        config: ClientConfig with max_sockets and timeout

    Returns:
        botocore.config.Config
    """
    return BotoConfig(
        max_pool_connections=config.max_sockets,
        connect_timeout=config.timeout,
        read_timeout=config.timeout,
        retries={"max_attempts": 3, "mode": "standard"},
    )


def create_boto3_session(config, profile_name: Optional[str] = None):
    """Create a boto3 session from explicit credentials or a named profile.

    Credentials from the s3cmd config take precedence; without them the
    standard boto3 credential chain (optionally with *profile_name*) is used.

    Args:
        config: ClientConfig
        profile_name: Optional AWS CLI profile name

    Returns:
        boto3.Session object
    """
    if config.access_key and config.secret_key:
        return boto3.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
        )
    return boto3.Session(profile_name=profile_name, region_name=config.region)


def create_s3_client(config, profile_name: Optional[str] = None):
    """Create an S3 client honouring the ClientConfig.

    Example:
        >>> s3 = create_s3_client(ClientConfig(max_sockets=30, insecure=True))
    """
    session = create_boto3_session(config, profile_name)
    return session.client(
        "s3",
        config=build_botocore_config(config),
        endpoint_url=config.endpoint_url,
        use_ssl=config.use_ssl,
    )
