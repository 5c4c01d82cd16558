#!/usr/bin/env python3
"""
GitHub Integration Demo

Fetches a pull request diff, parses it into files and hunks, and
prints the review prompt built for each hunk. Nothing is sent to the
model and nothing is published.

Usage:
    python examples/github_integration_demo.py <owner> <repo> <pr_number>

Example:
    python examples/github_integration_demo.py octocat hello-world 42
"""

import sys
import os
import logging

from ai_code_reviewer.github.client import GitHubClient, GitHubAPIError
from ai_code_reviewer.github.parser import UnifiedDiffParser, DiffParseError
from ai_code_reviewer.llm.prompts import PromptBuilder


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main():
    """Main demo function."""
    setup_logging()

    if len(sys.argv) != 4:
        print("Usage: python github_integration_demo.py <owner> <repo> <pr_number>")
        sys.exit(1)

    owner, repo, pr_number = sys.argv[1], sys.argv[2], int(sys.argv[3])

    token = os.getenv('GITHUB_TOKEN')
    if not token:
        print("❌ GITHUB_TOKEN is not set")
        sys.exit(1)

    with GitHubClient(token) as client:
        try:
            context = client.get_change_request_context(owner, repo, pr_number)
            diff_text = client.get_pull_request_diff(owner, repo, pr_number)
        except GitHubAPIError as e:
            print(f"❌ GitHub API error: {e}")
            sys.exit(1)

    try:
        diff_files = UnifiedDiffParser().parse(diff_text)
    except DiffParseError as e:
        print(f"❌ Could not parse diff: {e}")
        sys.exit(1)

    print(f"📋 {context.full_name}#{context.pull_number}: {context.title}")
    print(f"📁 {len(diff_files)} files changed")

    builder = PromptBuilder()
    for diff_file in diff_files:
        status = "deleted" if diff_file.is_deleted else ("new" if diff_file.is_new else "modified")
        print(f"\n=== {diff_file.display_path} ({status}, +{diff_file.additions}/-{diff_file.deletions})")
        if diff_file.is_deleted:
            continue
        for index, hunk in enumerate(diff_file.hunks):
            print(f"\n--- hunk {index}: {hunk.header}")
            print(builder.build_review_prompt(context, diff_file, hunk))


if __name__ == "__main__":
    main()
