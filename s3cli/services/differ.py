"""
Tree differ: reconciles a local enumeration against a remote listing.

The local side is materialized into a map first; the remote listing is
consumed page by page so that comparisons (and hashing) start before the
whole listing has arrived. Every key in the union of both sides ends up in
exactly one action, unless it failed to read locally or another object
already claimed its key.
"""
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ListingFailed, LocalReadError, PerItemTransferError, S3CliError
from ..models.action import ActionKind, SyncAction, SyncDirection
from ..models.entry import Entry
from .hasher import ContentHasher, parse_multipart_etag
from .progress import FILES_FOUND, OBJECTS_FOUND

log = logging.getLogger(__name__)


class TreeDiffer:
    """Produces the action set for one direction of a sync.

    Args:
        direction: SyncDirection.UPLOAD (local -> remote) or DOWNLOAD
        delete_removed: Delete destination entries that have no source
        compare_hash: Also require equal content hashes for a Skip
        hasher: ContentHasher for local files (created if omitted)
        aggregator: Optional ProgressAggregator for discovery counters
        remote_digest: Callable returning the MD5 of a remote entry that
            has no usable ETag (streams the object)
    """

    def __init__(self, direction: SyncDirection, delete_removed: bool = False,
                 compare_hash: bool = True, hasher: Optional[ContentHasher] = None,
                 aggregator=None,
                 remote_digest: Optional[Callable[[Entry], str]] = None):
        self.direction = direction
        self.delete_removed = delete_removed
        self.compare_hash = compare_hash
        self.hasher = hasher or ContentHasher(aggregator)
        self.aggregator = aggregator
        self.remote_digest = remote_digest
        self.errors: List[S3CliError] = []
        self.listing_complete = False

    def _report(self, name, delta=1):
        if self.aggregator is not None:
            self.aggregator.report(name, delta)

    def _set_total(self, name, total):
        if self.aggregator is not None:
            self.aggregator.set_total(name, total)

    # ── Comparison ─────────────────────────────────────────────────────

    def _local_hash(self, local: Entry, remote: Entry) -> str:
        local.content_hash = self.hasher.file_digest(
            local.path, etag_hint=remote.content_hash, size=local.size)
        return local.content_hash

    def _remote_hash(self, remote: Entry) -> Optional[str]:
        if remote.content_hash:
            return remote.content_hash
        if self.remote_digest is None:
            return None
        try:
            remote.content_hash = self.remote_digest(remote)
        except (S3CliError, ClientError, BotoCoreError, OSError) as e:
            log.warning("Cannot hash %s, treating it as changed: %s", remote.key, e)
            return None
        return remote.content_hash

    def entries_equal(self, local: Entry, remote: Entry) -> bool:
        """
        Skip rule: sizes equal AND (hashing disabled OR hashes equal).

        The local hash is only computed after the size check passes.

        Raises:
            LocalReadError: If the local file cannot be hashed
        """
        if local.size != remote.size:
            return False
        if not self.compare_hash:
            return True

        remote_hash = self._remote_hash(remote)
        if remote_hash is None:
            log.debug("No hash available for %s, treating as changed", remote.key)
            return False
        if parse_multipart_etag(remote_hash) is None and local.content_hash:
            local_hash = local.content_hash
        else:
            local_hash = self._local_hash(local, remote)
        return local_hash.lower() == remote_hash.lower()

    # ── Diff pass ──────────────────────────────────────────────────────

    def build_local_map(self, local_entries: Iterable[Entry]) -> Dict[str, Entry]:
        """Materialize ``relative_key -> local entry`` and count files found."""
        local_map: Dict[str, Entry] = {}
        folded: Dict[str, str] = {}
        for entry in local_entries:
            local_map[entry.relative_key] = entry
            self._report(FILES_FOUND)

            lowered = entry.relative_key.lower()
            other = folded.setdefault(lowered, entry.relative_key)
            if other != entry.relative_key:
                log.warning("Local keys %s and %s differ only by case; remote keys "
                            "are case-sensitive", other, entry.relative_key)

        self._set_total(FILES_FOUND, len(local_map))
        log.debug("Found %d local file(s)", len(local_map))
        return local_map

    def _matched(self, local: Entry, remote: Entry) -> Optional[SyncAction]:
        try:
            equal = self.entries_equal(local, remote)
        except LocalReadError as e:
            log.warning("%s", e)
            self.errors.append(e)
            return None

        if self.direction is SyncDirection.UPLOAD:
            return SyncAction.skip(local) if equal else SyncAction.upload(local)
        return SyncAction.skip(remote) if equal else SyncAction.download(remote)

    def _duplicate(self, remote: Entry):
        kind = ActionKind.UPLOAD if self.direction is SyncDirection.UPLOAD else ActionKind.DOWNLOAD
        error = PerItemTransferError(
            remote.key, kind, f"another object already maps to {remote.relative_key}")
        log.warning("%s", error)
        self.errors.append(error)

    def _iter_remote(self, remote_pages):
        try:
            for page in remote_pages:
                for entry in page:
                    yield entry
        except S3CliError:
            raise
        except Exception as e:
            raise ListingFailed(f"Listing failed: {e}", cause=e) from e

    def diff(self, local_entries: Iterable[Entry],
             remote_pages: Iterable[Iterable[Entry]]) -> Iterator[SyncAction]:
        """
        Stream the actions for this sync.

        Args:
            local_entries: Local entries (fully consumed up front)
            remote_pages: Pages of remote entries, consumed lazily

        Yields:
            SyncAction instances; deletions come after the listing ends

        Raises:
            ListingFailed: If any listing page cannot be fetched
        """
        local_map = self.build_local_map(local_entries)
        upload = self.direction is SyncDirection.UPLOAD
        unmatched_remote: List[Entry] = []
        seen_remote = set()
        objects_found = 0

        for remote in self._iter_remote(remote_pages):
            objects_found += 1
            self._report(OBJECTS_FOUND)

            if remote.relative_key in seen_remote:
                self._duplicate(remote)
                continue
            seen_remote.add(remote.relative_key)

            local = local_map.pop(remote.relative_key, None)
            if local is not None:
                action = self._matched(local, remote)
                if action is not None:
                    yield action
            elif upload:
                unmatched_remote.append(remote)
            else:
                yield SyncAction.download(remote)

        self.listing_complete = True
        self._set_total(OBJECTS_FOUND, objects_found)
        log.debug("Listing complete: %d object(s)", objects_found)

        if upload:
            for local in local_map.values():
                yield SyncAction.upload(local)
            for remote in unmatched_remote:
                yield SyncAction.delete_remote(remote) if self.delete_removed else SyncAction.skip(remote)
        else:
            for local in local_map.values():
                yield SyncAction.delete_local(local) if self.delete_removed else SyncAction.skip(local)
