"""Handler for the 'get' subcommand.

Downloads one object. Without a destination the object's base name in the
current directory is used; an existing directory receives the base name too.
"""
import os
import posixpath

from botocore.exceptions import BotoCoreError, ClientError

from ..models.action import ActionKind, SyncAction
from ..models.entry import Entry
from ..services.resolver import parse_s3_url
from ..services.session import TransferSession
from ..utils.display.display_utils import print_error
from .base_handler import CommandHandler


class GetHandler(CommandHandler):
    """Handles ``s3cli get s3://bucket/key [file]``."""

    label = "Download"

    def prepare_context(self):
        remote = parse_s3_url(self.args.source)
        name = posixpath.basename(remote.prefix)
        if not name:
            print_error(f"{remote} does not name an object")
            return None

        try:
            head = self.store.head_object(remote.bucket, remote.prefix)
        except (ClientError, BotoCoreError) as e:
            print_error(f"Cannot read {remote}: {e}")
            return None
        if head is None:
            print_error(f"No such object: {remote}")
            return None

        dest = self.args.dest or name
        if os.path.isdir(dest):
            dest = os.path.join(dest, name)

        entry = Entry.remote(remote.prefix, remote.prefix, size=head.size,
                             etag=head.etag, bucket=remote.bucket)
        action = SyncAction(ActionKind.DOWNLOAD, entry, target=os.path.abspath(dest))
        return {"action": action, "size": head.size}

    def execute_workflow(self, context):
        session = TransferSession(self.store, context["action"], size=context["size"],
                                  config=self.config)
        return self.run_session(session)
