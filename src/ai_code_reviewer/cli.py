"""
Command Line Entry Point

Runs one review for the pull request event GitHub Actions hands
to the workflow.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import yaml

from .api import ReviewAction
from .config import AppConfig, ConfigManager
from .github.events import EventPayloadError, load_event


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-code-reviewer",
        description="Review a GitHub pull request with an OpenAI model and post inline comments.",
    )
    parser.add_argument("--config", help="YAML configuration file (defaults to environment variables)")
    parser.add_argument(
        "--event-path",
        default=os.getenv("GITHUB_EVENT_PATH"),
        help="Pull request event payload (defaults to GITHUB_EVENT_PATH)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Log comments instead of publishing them")
    return parser


async def _run(config: AppConfig, event_path: Optional[str]) -> int:
    event = load_event(event_path)
    async with ReviewAction(config) as action:
        result = await action.run(event)
    return 1 if result.status == 'failed' else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_yaml(args.config) if args.config else AppConfig.from_env()
        if args.dry_run:
            config.review.dry_run = True
        ConfigManager(config)
    except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(_run(config, args.event_path))
    except EventPayloadError as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
