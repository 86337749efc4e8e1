"""Base command handler with template method pattern."""
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from boto3.s3.transfer import S3Transfer

from ..errors import InvalidAddress
from ..models.outcome import SyncOutcome
from ..services.progress import BYTES_TRANSFERRED
from ..utils.display.display_utils import EXIT_FATAL, print_error, print_outcome
from ..utils.display.status_renderer import StatusRenderer
from ..utils.file_utils import guess_content_type

HEADER_RE = re.compile(r'^(.*?):\s*(.*)$')


class CommandHandler(ABC):
    """Abstract base class for all command handlers."""

    label = "Operation"

    def __init__(self, cli, args):
        """Initialize command handler with the S3Cli instance.

        Args:
            cli: Main S3Cli instance holding the client config and store
            args: Parsed argparse namespace for the subcommand
        """
        self.cli = cli
        self.args = args
        self.config = cli.config
        self.store = cli.store

    def execute(self) -> int:
        """Execute command workflow (Template Method).

        Returns:
            Exit code (0 success, 2 partial failure, 1 fatal, 130 cancelled)
        """
        try:
            if not self.validate_prerequisites():
                return EXIT_FATAL
            context = self.prepare_context()
        except InvalidAddress as e:
            print_error(e)
            return EXIT_FATAL
        if context is None:
            return EXIT_FATAL

        result = self.execute_workflow(context)
        return self.display_completion(result)

    def validate_prerequisites(self) -> bool:
        """Check arguments before any network call.

        Returns:
            True if the command can run, False otherwise
        """
        return True

    @abstractmethod
    def prepare_context(self) -> Optional[Dict[str, Any]]:
        """Resolve addresses and build whatever the workflow needs.

        Returns:
            Context dictionary, or None if preparation failed
        """

    @abstractmethod
    def execute_workflow(self, context: Dict[str, Any]) -> Any:
        """Run the command.

        Args:
            context: Prepared context dictionary

        Returns:
            SyncOutcome for session-backed commands, or an exit code
        """

    def display_completion(self, result: Any) -> int:
        """Print the final report and map it to an exit code."""
        if isinstance(result, SyncOutcome):
            return print_outcome(result, self.label)
        return int(result)

    # ── Shared helpers ─────────────────────────────────────────────────

    def run_session(self, session, metric=BYTES_TRANSFERRED, show_bytes=True) -> SyncOutcome:
        """Run a session in the background while the status line is drawn.

        The main thread polls with a timeout so SIGINT is delivered promptly.
        """
        renderer = None
        if not getattr(self.args, 'quiet', False):
            renderer = StatusRenderer(session.progress, metric=metric,
                                      show_bytes=show_bytes).start()

        self.cli.session = session
        try:
            session.start()
            while not session.wait(0.2):
                pass
        finally:
            self.cli.session = None
            if renderer is not None:
                renderer.stop()
        return session.outcome

    def upload_params(self):
        """
        Build the per-file upload parameter factory from the CLI flags.

        ``--add-header "Cache-Control: max-age=60"`` becomes the upload
        parameter ``CacheControl``.

        Returns:
            Callable mapping a local Entry to boto3 ExtraArgs

        Raises:
            InvalidAddress: For a malformed or unsupported header
        """
        static = {}
        acl = self.acl()
        if acl:
            static['ACL'] = acl

        for header in getattr(self.args, 'add_header', None) or []:
            match = HEADER_RE.match(header)
            if not match or not match.group(1).strip():
                raise InvalidAddress(f"Improperly formatted header: {header}")
            param_name = match.group(1).strip().replace('-', '')
            if param_name not in S3Transfer.ALLOWED_UPLOAD_ARGS:
                raise InvalidAddress(f"Unsupported header: {match.group(1).strip()}")
            static[param_name] = match.group(2)

        default_type = getattr(self.args, 'default_mime_type', None)
        guess = not getattr(self.args, 'no_guess_mime_type', False)

        def params_for(entry):
            params = dict(static)
            params.setdefault('ContentType',
                              guess_content_type(entry.path, default_type, guess))
            return params

        return params_for

    def acl(self):
        if getattr(self.args, 'acl_public', False):
            return 'public-read'
        if getattr(self.args, 'acl_private', False):
            return 'private'
        return None


def destination_key(remote, name):
    """Object key for *name* under a remote address.

    An empty key or one ending in ``/`` names a "directory", so the file
    name is appended.
    """
    if not remote.prefix or remote.prefix.endswith('/'):
        return remote.prefix + name
    return remote.prefix
