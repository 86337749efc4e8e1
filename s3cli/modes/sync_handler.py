"""Handler for the 'sync' subcommand.

Synchronizes a local directory with a bucket prefix. The direction follows
from which argument is the S3 URL.
"""
from ..models.action import SyncDirection
from ..services.resolver import is_s3_url, parse_s3_url
from ..services.session import SyncRequest, SyncSession
from ..utils.display.display_utils import print_error
from .base_handler import CommandHandler


class SyncHandler(CommandHandler):
    """Handles ``s3cli sync <source> <dest>``."""

    label = "Sync"

    def validate_prerequisites(self) -> bool:
        source_s3 = is_s3_url(self.args.source)
        dest_s3 = is_s3_url(self.args.dest)
        if source_s3 == dest_s3:
            print_error("one target must be from S3, the other must be from local file system.")
            return False
        return True

    def prepare_context(self):
        if is_s3_url(self.args.dest):
            direction = SyncDirection.UPLOAD
            local_dir, remote = self.args.source, parse_s3_url(self.args.dest)
            upload_params = self.upload_params()
        else:
            direction = SyncDirection.DOWNLOAD
            local_dir, remote = self.args.dest, parse_s3_url(self.args.source)
            upload_params = None

        request = SyncRequest(
            direction, local_dir, remote,
            delete_removed=self.args.delete_removed,
            compare_hash=not self.args.no_checksum,
            stream_transfers=self.args.stream,
            upload_params=upload_params,
        )
        return {"request": request}

    def execute_workflow(self, context):
        session = SyncSession(self.store, context["request"], config=self.config)
        return self.run_session(session)
