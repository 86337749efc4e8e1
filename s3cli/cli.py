"""
s3cli - Main CLI interface
Sync local directories with S3 and move single files and objects around.

Subcommand model: every command resolves its addresses, runs a session in
the background and reports a single outcome with a distinct exit code.
"""
import sys
import signal
import argparse
from colorama import init, Fore, Style
from .utils.config_loader import ClientConfig, ConfigLoader
from .utils.display.display_utils import EXIT_CANCELLED, EXIT_FATAL, EXIT_SUCCESS, print_error
from .services.aws.store_client import S3StoreClient
from .errors import ConfigError

# Initialize colorama
init(autoreset=True)

COMMANDS = ('sync', 'ls', 'help', 'del', 'put', 'get', 'cp', 'mv')

# ── Help-text epilogs for subcommands ──────────────────────────────────────

SYNC_EXAMPLES = """\
Examples:
  s3cli sync ./site s3://my-bucket/www/
  s3cli sync ./site s3://my-bucket/www/ --delete-removed --acl-public
  s3cli sync s3://my-bucket/backups/ ./restore
  s3cli sync ./site s3://my-bucket/www/ --add-header "Cache-Control: max-age=300"

One side must be an S3 URL, the other a local directory.
"""

LS_EXAMPLES = """\
Examples:
  s3cli ls s3://my-bucket/
  s3cli ls --recursive s3://my-bucket/logs/
"""

DEL_EXAMPLES = """\
Examples:
  s3cli del s3://my-bucket/old.txt
  s3cli del --recursive s3://my-bucket/tmp/
"""

PUT_EXAMPLES = """\
Examples:
  s3cli put report.pdf s3://my-bucket/reports/
  s3cli put index.html s3://my-bucket/www/index.html -P
"""

GET_EXAMPLES = """\
Examples:
  s3cli get s3://my-bucket/reports/report.pdf
  s3cli get s3://my-bucket/reports/report.pdf ./downloads/
"""


class S3Cli:
    """Main CLI application class."""

    def __init__(self, config=None, store=None):
        """Initialize CLI application.

        Args:
            config: ClientConfig for this invocation
            store: Remote store client shared by the handlers
        """
        self.config = config
        self.store = store
        self.session = None
        self._interrupts = 0

        # Setup signal handler for graceful shutdown
        signal.signal(signal.SIGINT, self.signal_handler)

    def signal_handler(self, sig, frame):
        """Handle Ctrl+C: cancel the running session, force-exit on the second."""
        self._interrupts += 1
        session = self.session
        if session is None or self._interrupts > 1:
            print(f"\n{Fore.YELLOW}[INFO] Interrupted{Style.RESET_ALL}", file=sys.stderr)
            sys.exit(EXIT_CANCELLED)
        print(f"\n{Fore.YELLOW}[INFO] Cancelling, waiting for in-flight transfers "
              f"(Ctrl+C again to force)...{Style.RESET_ALL}", file=sys.stderr)
        session.cancel()


def create_argument_parser():
    """Create and configure the subparser-based argument parser."""
    parser = argparse.ArgumentParser(
        prog='s3cli',
        description='s3cli - sync local directories with S3',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Shared parent so common flags work after the subcommand name
    _common_parent = argparse.ArgumentParser(add_help=False)
    _common_parent.add_argument('--verbose', action='store_true', help='Enable verbose output')
    _common_parent.add_argument('--quiet', action='store_true',
                                help='Only print warnings, errors and the final report')
    _common_parent.add_argument('--config', help='s3cmd-style config file (default: ~/.s3cfg)')
    _common_parent.add_argument('--max-sockets', type=int, dest='max_sockets',
                                help='Maximum open connections to S3 (default: 30)')
    _common_parent.add_argument('--insecure', action='store_true', default=None,
                                help='Use plain HTTP instead of HTTPS')
    _common_parent.add_argument('--timeout', type=float,
                                help='Network timeout in seconds (default: 60)')
    _common_parent.add_argument('--action-timeout', type=float, dest='action_timeout',
                                help='Give up on a single transfer after this many seconds')
    _common_parent.add_argument('--concurrency', type=int,
                                help='Maximum transfers in flight (default: 20)')

    # Upload parameters shared by sync and put
    _upload_parent = argparse.ArgumentParser(add_help=False)
    acl_group = _upload_parent.add_mutually_exclusive_group()
    acl_group.add_argument('--acl-public', '-P', action='store_true', dest='acl_public',
                           help='Make uploaded objects publicly readable')
    acl_group.add_argument('--acl-private', action='store_true', dest='acl_private',
                           help='Make uploaded objects private')
    _upload_parent.add_argument('--add-header', action='append', dest='add_header',
                                metavar='"NAME: VALUE"',
                                help='Extra upload header, e.g. "Cache-Control: max-age=60" '
                                     '(repeatable)')
    _upload_parent.add_argument('--default-mime-type', dest='default_mime_type',
                                help='Content type used when none can be guessed')
    _upload_parent.add_argument('--no-guess-mime-type', action='store_true',
                                dest='no_guess_mime_type',
                                help='Always use the default content type')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ── sync ───────────────────────────────────────────────────────────
    sync_parser = subparsers.add_parser(
        'sync',
        parents=[_common_parent, _upload_parent],
        help='Synchronize a local directory with an S3 prefix',
        epilog=SYNC_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sync_parser.add_argument('source', help='Local directory or s3://bucket/prefix')
    sync_parser.add_argument('dest', help='Local directory or s3://bucket/prefix')
    sync_parser.add_argument('--delete-removed', action='store_true', dest='delete_removed',
                             help='Delete destination files that no longer exist at the source')
    sync_parser.add_argument('--no-checksum', action='store_true', dest='no_checksum',
                             help='Compare sizes only, never content hashes')
    sync_parser.add_argument('--stream', action='store_true',
                             help='Start transfers before the listing has finished')

    # ── ls ─────────────────────────────────────────────────────────────
    ls_parser = subparsers.add_parser(
        'ls',
        parents=[_common_parent],
        help='List objects and prefixes',
        epilog=LS_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ls_parser.add_argument('url', help='s3://bucket/prefix')
    ls_parser.add_argument('--recursive', '-r', action='store_true',
                           help='List every object under the prefix')

    # ── del ────────────────────────────────────────────────────────────
    del_parser = subparsers.add_parser(
        'del',
        parents=[_common_parent],
        help='Delete an object or a whole prefix',
        epilog=DEL_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    del_parser.add_argument('url', help='s3://bucket/key')
    del_parser.add_argument('--recursive', '-r', action='store_true',
                            help='Delete every object under the prefix')

    # ── put ────────────────────────────────────────────────────────────
    put_parser = subparsers.add_parser(
        'put',
        parents=[_common_parent, _upload_parent],
        help='Upload a single file',
        epilog=PUT_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    put_parser.add_argument('source', help='Local file')
    put_parser.add_argument('dest', help='s3://bucket/key (a trailing / keeps the file name)')

    # ── get ────────────────────────────────────────────────────────────
    get_parser = subparsers.add_parser(
        'get',
        parents=[_common_parent],
        help='Download a single object',
        epilog=GET_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    get_parser.add_argument('source', help='s3://bucket/key')
    get_parser.add_argument('dest', nargs='?', help='Local file or directory')

    # ── cp / mv ────────────────────────────────────────────────────────
    for name, help_text in (('cp', 'Copy an object within S3'),
                            ('mv', 'Move an object within S3')):
        copy_parser = subparsers.add_parser(name, parents=[_common_parent], help=help_text)
        copy_parser.add_argument('source', help='s3://bucket/key')
        copy_parser.add_argument('dest', help='s3://bucket/key (a trailing / keeps the name)')
        copy_parser.add_argument('--acl-public', '-P', action='store_true', dest='acl_public',
                                 help='Make the new object publicly readable')
        copy_parser.add_argument('--acl-private', action='store_true', dest='acl_private',
                                 help='Make the new object private')

    # ── help ───────────────────────────────────────────────────────────
    subparsers.add_parser('help', help='Show usage')

    return parser


def print_usage():
    print("Usage: s3cli (command) (command arguments)")
    print("Commands:", " ".join(COMMANDS))


def _bootstrap(args):
    """Load credentials and build the client config and store.

    Returns:
        Tuple of (S3Cli instance, exit_code_or_None).
        If exit_code_or_None is not None, caller should return that code.
    """
    try:
        credentials = ConfigLoader.load_s3cfg(args.config)
    except ConfigError as e:
        print_error(e)
        return None, EXIT_FATAL

    overrides = {
        'max_sockets': args.max_sockets,
        'insecure': args.insecure,
        'timeout': args.timeout,
        'action_timeout': args.action_timeout,
        'concurrency': args.concurrency,
    }
    try:
        config = ClientConfig.from_sources(credentials, overrides)
    except ValueError as e:
        print_error(e)
        return None, EXIT_FATAL

    return S3Cli(config, S3StoreClient(config)), None


def main(argv=None):
    """Main CLI entry point."""
    from .utils.logger import setup_logging

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.command in (None, 'help'):
        print_usage()
        return EXIT_SUCCESS if args.command == 'help' else EXIT_FATAL

    # Initialise the logging subsystem based on --verbose / --quiet
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    cli, exit_code = _bootstrap(args)
    if exit_code is not None:
        return exit_code

    from .modes.sync_handler import SyncHandler
    from .modes.list_handler import ListHandler
    from .modes.delete_handler import DeleteHandler
    from .modes.put_handler import PutHandler
    from .modes.get_handler import GetHandler
    from .modes.copy_handler import CopyHandler

    # Route to handler
    handlers = {
        'sync': lambda: SyncHandler(cli, args),
        'ls':   lambda: ListHandler(cli, args),
        'del':  lambda: DeleteHandler(cli, args),
        'put':  lambda: PutHandler(cli, args),
        'get':  lambda: GetHandler(cli, args),
        'cp':   lambda: CopyHandler(cli, args),
        'mv':   lambda: CopyHandler(cli, args, move=True),
    }
    return handlers[args.command]().execute()


if __name__ == '__main__':
    sys.exit(main())
