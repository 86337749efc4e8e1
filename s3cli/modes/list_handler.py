"""Handler for the 'ls' subcommand.

Prints ``DIR <prefix>`` for every common prefix and
``<last modified> <size> <key>`` for every object, page by page.
"""
from ..errors import ListingFailed
from ..services.resolver import parse_s3_url
from ..utils.display.display_utils import EXIT_FATAL, EXIT_SUCCESS, print_error
from .base_handler import CommandHandler


def format_object_line(obj):
    modified = obj.last_modified.isoformat() if obj.last_modified is not None else "-"
    return f"{modified} {obj.size} {obj.key}"


class ListHandler(CommandHandler):
    """Handles ``s3cli ls [--recursive] s3://bucket/prefix``."""

    label = "List"

    def prepare_context(self):
        return {"remote": parse_s3_url(self.args.url)}

    def execute_workflow(self, context):
        remote = context["remote"]
        delimiter = None if self.args.recursive else "/"
        try:
            for page in self.store.list_prefix(remote.bucket, remote.prefix, delimiter=delimiter):
                for prefix in page.common_prefixes:
                    print(f"DIR {prefix}")
                for obj in page.objects:
                    print(format_object_line(obj))
        except ListingFailed as e:
            print_error(e)
            return EXIT_FATAL
        return EXIT_SUCCESS
