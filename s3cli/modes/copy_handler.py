"""Handler for the 'cp' and 'mv' subcommands.

Server-side copy between two S3 addresses; ``mv`` deletes the source once
the copy has succeeded.
"""
import posixpath

from botocore.exceptions import BotoCoreError, ClientError

from ..models.action import ActionKind, SyncAction
from ..models.entry import Entry
from ..services.resolver import is_s3_url, parse_s3_url
from ..services.session import TransferSession
from ..utils.display.display_utils import print_error
from .base_handler import CommandHandler, destination_key


class CopyHandler(CommandHandler):
    """Handles ``s3cli cp|mv s3://bucket/key s3://bucket/key``."""

    def __init__(self, cli, args, move=False):
        super().__init__(cli, args)
        self.move = move
        self.label = "Move" if move else "Copy"

    def validate_prerequisites(self) -> bool:
        if not (is_s3_url(self.args.source) and is_s3_url(self.args.dest)):
            print_error(f"{self.label.lower()} needs an S3 URL on both sides")
            return False
        return True

    def prepare_context(self):
        source = parse_s3_url(self.args.source)
        dest = parse_s3_url(self.args.dest)
        name = posixpath.basename(source.prefix)
        if not name:
            print_error(f"{source} does not name an object")
            return None

        try:
            head = self.store.head_object(source.bucket, source.prefix)
        except (ClientError, BotoCoreError) as e:
            print_error(f"Cannot read {source}: {e}")
            return None
        if head is None:
            print_error(f"No such object: {source}")
            return None

        entry = Entry.remote(source.prefix, source.prefix, size=head.size,
                             etag=head.etag, bucket=source.bucket)
        kind = ActionKind.MOVE if self.move else ActionKind.COPY
        action = SyncAction(kind, entry, target=destination_key(dest, name),
                            bucket=dest.bucket)

        copy_params = {}
        acl = self.acl()
        if acl:
            copy_params['ACL'] = acl
        return {"action": action, "size": head.size, "copy_params": copy_params}

    def execute_workflow(self, context):
        session = TransferSession(self.store, context["action"], size=context["size"],
                                  config=self.config, copy_params=context["copy_params"])
        return self.run_session(session)
