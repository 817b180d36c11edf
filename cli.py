"""
CLI entry point for git-pending. Wires the pipeline: scan -> blame -> correlate -> filter -> report
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, List

from errors import ConfigurationError
from ingest.git import GitGrepScanner, GitBlameAttributor
from pipeline.controller import run_pipeline, PipelineView
from report.renderer import render, render_loading
from settings import load_config, validate_repository, validate_revision, PendingConfig
from stats.filters import filter_comments

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INCOMPLETE = 2

USAGE_EXAMPLES = """
Example
  # gets all the pending todo, fixme, testme and docme comments
  $ git pending

  # shows the comments in non-verbose manner
  $ git pending --oneline

  # gets only the given type of comments e.g. "FIXME"
  $ git pending --type FIXME

  # gets all the fixme comments by kamran
  $ git pending --type FIXME --author kamran --oneline
"""


def configure_logging(level: str = 'WARNING'):
    """Send log records to stderr so stdout only carries the report."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        stream=sys.stderr,
        format='%(levelname)s %(name)s: %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='git-pending',
        description="Find pending TODO/FIXME/TESTME/DOCME comments and who left them",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--path", type=str, default="", help="Repository to scan (default: current directory)")
    parser.add_argument("--oneline", "-o", action="store_true", help="Shows each comment in single line")
    parser.add_argument("--type", "-t", type=str, default="", help="Type of comments required FIXME/TODO/DOCME/TESTME")
    parser.add_argument("--author", "-a", type=str, default="", help="Name of the author to show the comments from")
    parser.add_argument("--stats", dest="stats", action="store_true", default=True, help="Show the stats (default)")
    parser.add_argument("--no-stats", dest="stats", action="store_false", help="Do not show the stats")
    parser.add_argument("--rev", type=str, default="", help="Revision to scan (overrides PENDING_REVISION env, default HEAD)")
    parser.add_argument("--markers", type=str, default="", help="Comma separated markers (overrides PENDING_MARKERS env)")
    parser.add_argument("--config", type=str, default="", help="Path to a YAML config file")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for blame results (overrides PENDING_TIMEOUT env)")
    parser.add_argument("--output", type=str, default="text", choices=("text", "md", "csv", "json", "html"), help="Output format")
    parser.add_argument("--out-file", type=str, default="", help="Write the report to this file instead of stdout")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level for diagnostics on stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="Shortcut for --log-level INFO")
    return parser


def resolve_config(args) -> PendingConfig:
    """Build the run configuration from the config file, environment and CLI flags.

    Raises ConfigurationError if the target is not a git repository, the revision
    does not name a commit, or a value is invalid.
    """
    repo_path = validate_repository(args.path or os.getcwd())
    config = load_config(
        args.config or None,
        repo_path=repo_path,
        markers=args.markers or None,
        revision=args.rev or None,
        timeout=args.timeout,
    )
    validate_revision(config.repo_path, config.revision)
    return config


class ProgressPrinter:
    """on_update callback that reports the number of comments found while loading."""

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stderr
        self.last_count = -1
        self.enabled = hasattr(self.stream, 'isatty') and self.stream.isatty()

    def __call__(self, view: PipelineView):
        if not self.enabled or view.raw_count == self.last_count:
            return
        self.last_count = view.raw_count
        self.stream.write(f"\rTotal {view.raw_count} comments found, loading ...")
        self.stream.flush()

    def finish(self):
        if self.enabled and self.last_count >= 0:
            self.stream.write("\n")
            self.stream.flush()


def collect(config: PendingConfig, on_update=None) -> PipelineView:
    scanner = GitGrepScanner(config.repo_path)
    blamer = GitBlameAttributor(config.repo_path, config.revision)
    return asyncio.run(run_pipeline(config, scanner, blamer, on_update=on_update))


def pending_locations(view: PipelineView) -> List[str]:
    locations = []
    for key in view.pending:
        raw = view.raw_comments.get(key)
        locations.append(f"{raw.file}:{raw.line}" if raw else key)
    return locations


def render_view(view: PipelineView, args, config: PendingConfig) -> str:
    """Render the final report, or the still-loading state when joins are missing."""
    if not view.complete:
        return render_loading(view.raw_count, pending_locations(view))
    comments = filter_comments(view.comments, type=args.type or None, author=args.author or None)
    return render(comments, fmt=args.output, oneline=args.oneline, stats=args.stats, markers=config.markers)


def write_output(rendered: str, out_file: str = ""):
    """Write output to a file or stdout."""
    if not out_file.strip():
        print(rendered)
        return
    out_dir = os.path.dirname(out_file)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(out_file, "w", encoding="utf-8") as f:
        f.write(rendered)
    print(f"Wrote report to {out_file}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging('INFO' if args.verbose else args.log_level)

    try:
        config = resolve_config(args)
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    progress = ProgressPrinter()
    try:
        view = collect(config, on_update=progress)
    finally:
        progress.finish()

    if not view.complete:
        # still-loading output never goes to a report file
        print(render_view(view, args, config))
        return EXIT_INCOMPLETE

    write_output(render_view(view, args, config), args.out_file)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
