"""
Prompt Builder

Builds the per-hunk review prompt sent to the language model.
The rendered prompt depends only on its inputs, so identical
hunks always produce byte-identical prompts.
"""

import logging
from typing import List

from ..models.pr_diff import ChangeRequestContext, DiffFile, DiffHunk


logger = logging.getLogger(__name__)


REVIEW_INSTRUCTIONS = """Your task is to review pull requests. Instructions:
- Provide the response in following JSON format:  [{"lineNumber":  <line_number>, "reviewComment": "<review comment>"}]
- Do not give positive comments or compliments.
- Provide comments and suggestions ONLY if there is something to improve, otherwise return an empty array.
- Write the comment in GitHub Markdown format.
- Use the given description only for the overall context and only comment the code.
- IMPORTANT: NEVER suggest adding comments to the code."""

REVIEW_TEMPLATE = """{instructions}

Review the following code diff in the file "{file_path}" and take the pull request title and description into account when writing the response.

Pull request title: {title}
Pull request description:

---
{description}
---

Git diff to review:

```diff
{hunk_header}
{numbered_changes}
```
"""


class PromptBuilder:
    """
    Builds review prompts for a single diff hunk.

    Each changed line is rendered with its resolved line number so the
    model can answer with line numbers that anchor on the pull request.
    """

    def __init__(self, instructions: str = REVIEW_INSTRUCTIONS):
        """
        Initialize prompt builder.

        Args:
            instructions: System instruction block placed at the top of every prompt
        """
        self.instructions = instructions

    def build_review_prompt(
        self,
        context: ChangeRequestContext,
        diff_file: DiffFile,
        hunk: DiffHunk
    ) -> str:
        """
        Build the review prompt for one hunk.

        Args:
            context: Pull request title and description
            diff_file: File owning the hunk
            hunk: Hunk to review

        Returns:
            Complete prompt string
        """
        logger.debug(f"Building review prompt for {diff_file.target_path} {hunk.header}")

        return REVIEW_TEMPLATE.format(
            instructions=self.instructions,
            file_path=diff_file.target_path,
            title=context.title,
            description=context.description,
            hunk_header=hunk.header,
            numbered_changes=self.render_numbered_changes(hunk),
        )

    @staticmethod
    def render_numbered_changes(hunk: DiffHunk) -> str:
        """Render every change line as ``<line number> <content>``."""
        lines: List[str] = [
            f"{change.resolved_line_number} {change.content}"
            for change in hunk.changes
        ]
        return "\n".join(lines)
