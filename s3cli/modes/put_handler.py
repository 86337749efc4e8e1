"""Handler for the 'put' subcommand."""
import os

from ..errors import LocalReadError
from ..models.action import ActionKind, SyncAction
from ..models.entry import Entry
from ..services.resolver import parse_s3_url
from ..services.session import TransferSession
from ..utils.display.display_utils import print_error
from .base_handler import CommandHandler, destination_key


class PutHandler(CommandHandler):
    """Handles ``s3cli put <file> s3://bucket/key``."""

    label = "Upload"

    def prepare_context(self):
        source = self.args.source
        remote = parse_s3_url(self.args.dest)
        try:
            size = os.stat(source).st_size
        except OSError as e:
            print_error(LocalReadError(source, e))
            return None
        if not os.path.isfile(source):
            print_error(f"{source} is not a file")
            return None

        name = os.path.basename(source)
        entry = Entry.local(name, os.path.abspath(source), size=size)
        action = SyncAction(ActionKind.UPLOAD, entry,
                            target=destination_key(remote, name), bucket=remote.bucket)
        return {"action": action, "size": size, "upload_params": self.upload_params()}

    def execute_workflow(self, context):
        session = TransferSession(self.store, context["action"], size=context["size"],
                                  config=self.config,
                                  upload_params=context["upload_params"])
        return self.run_session(session)
