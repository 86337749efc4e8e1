"""Handler for the 'del' subcommand.

Deletes one object, or with ``--recursive`` every object under a prefix.
"""
from ..services.progress import OBJECTS_DELETED
from ..services.resolver import parse_s3_url
from ..services.session import DeleteSession
from .base_handler import CommandHandler


class DeleteHandler(CommandHandler):
    """Handles ``s3cli del [--recursive] s3://bucket/key``."""

    label = "Delete"

    def prepare_context(self):
        return {"remote": parse_s3_url(self.args.url)}

    def execute_workflow(self, context):
        session = DeleteSession(self.store, context["remote"],
                                recursive=self.args.recursive, config=self.config)
        return self.run_session(session, metric=OBJECTS_DELETED, show_bytes=False)
