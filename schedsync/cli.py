#!/usr/bin/env python3
"""schedsync CLI entrypoint."""

import sys
import argparse
import logging

from schedsync.lib.config import ConfigError, load_sync_config
from schedsync.lib.constants import EXIT_CONFIG_ERROR
from schedsync.lib.urls import URLParseError, parse_github_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='schedsync',
        description='Schedule GitHub Project items and write the forecast dates back',
    )
    parser.add_argument('url', help='Project, repository or issue URL, or owner/repo')
    parser.add_argument('--dry-run', action='store_true', help='Show planned updates without writing')
    parser.add_argument('--comments', action='store_true', help='Post scheduling notices on issues')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        target = parse_github_url(args.url)
    except URLParseError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        config = load_sync_config()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # Prefect loads only once a run starts
    from schedsync.workflow.engine import sync_flow

    return sync_flow(target, config, dry_run=args.dry_run, comments=args.comments)


if __name__ == '__main__':
    sys.exit(main())
