"""
Remote store client built on boto3.

Provides the primitives the sync engine consumes: paginated prefix
listing, managed upload/download/copy with byte-progress callbacks and
object deletion. botocore errors on the listing path are
translated into ListingFailed; transfer errors propagate to the task pool,
which records them per item.
"""
import logging
import os
from typing import Callable, Iterator, Optional

from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from ...errors import ListingFailed
from ...models.remote import ListingPage, RemoteObject
from ...utils.aws.aws_utils import create_s3_client
from ...utils.file_utils import ensure_dir
from ..hasher import DEFAULT_PART_SIZE

log = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


class S3StoreClient:
    """Primitive S3 operations used by sessions and command handlers.

    Args:
        config: ClientConfig (pool size, TLS, timeouts, credentials)
        client: Optional pre-built boto3 S3 client
        profile_name: AWS profile used when the config has no credentials
    """

    def __init__(self, config, client=None, profile_name=None):
        self.config = config
        self.s3_client = client or create_s3_client(config, profile_name)
        self.transfer_config = TransferConfig(
            multipart_chunksize=DEFAULT_PART_SIZE,
            max_concurrency=4,
            use_threads=True,
        )

    # ── Listing ────────────────────────────────────────────────────────

    def list_prefix(self, bucket, prefix="", delimiter=None, page_size=None) -> Iterator[ListingPage]:
        """
        Lazily list objects under a prefix, one page per round trip.

        Args:
            bucket: Bucket name
            prefix: Key prefix
            delimiter: ``/`` to group "directories" into common prefixes
            page_size: Optional MaxKeys per request

        Yields:
            ListingPage objects

        Raises:
            ListingFailed: If any page cannot be fetched
        """
        params = {"Bucket": bucket, "Prefix": prefix or ""}
        if delimiter:
            params["Delimiter"] = delimiter
        if page_size:
            params["PaginationConfig"] = {"PageSize": page_size}

        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page_no, page in enumerate(paginator.paginate(**params), start=1):
                objects = [
                    RemoteObject(
                        key=obj["Key"],
                        size=int(obj.get("Size", 0)),
                        last_modified=obj.get("LastModified"),
                        etag=(obj.get("ETag") or "").strip('"') or None,
                    )
                    for obj in page.get("Contents", [])
                ]
                prefixes = [p["Prefix"] for p in page.get("CommonPrefixes", [])]
                log.debug("Listing page %d of s3://%s/%s: %d object(s)",
                          page_no, bucket, prefix, len(objects))
                yield ListingPage(objects, prefixes)
        except (ClientError, BotoCoreError) as e:
            raise ListingFailed(f"Listing s3://{bucket}/{prefix} failed: {e}", cause=e) from e

    def head_object(self, bucket, key) -> Optional[RemoteObject]:
        """Return object metadata, or None if the object does not exist."""
        try:
            head = self.s3_client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
            if code in _NOT_FOUND_CODES or status == 404:
                return None
            raise
        return RemoteObject(
            key=key,
            size=int(head.get("ContentLength", 0)),
            last_modified=head.get("LastModified"),
            etag=(head.get("ETag") or "").strip('"') or None,
        )

    # ── Transfers ──────────────────────────────────────────────────────

    def upload_file(self, local_path, bucket, key, extra_args=None,
                    callback: Optional[Callable[[int], None]] = None) -> None:
        """Upload a local file, reporting transferred bytes to *callback*."""
        self.s3_client.upload_file(
            Filename=str(local_path), Bucket=bucket, Key=key,
            ExtraArgs=extra_args or None, Callback=callback,
            Config=self.transfer_config,
        )

    def download_file(self, bucket, key, local_path,
                      callback: Optional[Callable[[int], None]] = None) -> None:
        """Download an object to *local_path*, creating parent directories.

        The managed transfer writes to a temporary file and renames it into
        place, so a failed download never leaves a truncated file behind.
        """
        parent = os.path.dirname(str(local_path))
        if parent:
            ensure_dir(parent)
        self.s3_client.download_file(
            Bucket=bucket, Key=key, Filename=str(local_path),
            Callback=callback, Config=self.transfer_config,
        )

    def copy_object(self, source_bucket, source_key, bucket, key, extra_args=None,
                    callback: Optional[Callable[[int], None]] = None) -> None:
        """Server-side copy (multipart for large objects)."""
        self.s3_client.copy(
            CopySource={"Bucket": source_bucket, "Key": source_key},
            Bucket=bucket, Key=key, ExtraArgs=extra_args or None,
            Callback=callback, Config=self.transfer_config,
        )

    def iter_object_chunks(self, bucket, key, chunk_size=1024 * 1024) -> Iterator[bytes]:
        """Stream an object's body in chunks (used for hashing)."""
        response = self.s3_client.get_object(Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            for chunk in body.iter_chunks(chunk_size):
                yield chunk
        finally:
            body.close()

    # ── Deletion ───────────────────────────────────────────────────────

    def delete_object(self, bucket, key) -> None:
        self.s3_client.delete_object(Bucket=bucket, Key=key)
