"""
Unified Diff Parser

Parses the unified diff text returned by GitHub into per-file,
per-hunk structures with original/final line numbering.
"""

import re
import logging
from typing import List, Optional

from ..models.pr_diff import DiffFile, DiffHunk, ChangeLine, DEV_NULL


logger = logging.getLogger(__name__)


class DiffParseError(Exception):
    """Raised when diff text is not a well-formed unified diff"""
    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"{message} (diff line {line_number})"
        super().__init__(message)
        self.line_number = line_number


class UnifiedDiffParser:
    """
    Parser for unified diff text.

    Accepts git-style diffs (``diff --git`` headers, as served by the
    GitHub diff media type) as well as plain ``---``/``+++`` diffs.
    Hunk bodies are consumed by the line counts in their ``@@`` header.
    """

    def __init__(self):
        """Initialize unified diff parser."""
        self.hunk_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s*\+(\d+)(?:,(\d+))?\s*@@(.*)$')
        self.binary_file_pattern = re.compile(r'^Binary files? .* differ$')

    def parse(self, diff_text: str) -> List[DiffFile]:
        """
        Parse a whole-change diff into DiffFile objects.

        Args:
            diff_text: Unified diff text

        Returns:
            Ordered list of DiffFile objects, deleted files included

        Raises:
            DiffParseError: If the diff is malformed
        """
        if not diff_text or not diff_text.strip():
            return []

        files: List[DiffFile] = []
        current_file: Optional[DiffFile] = None
        current_hunk: Optional[DiffHunk] = None
        saw_source_header = False
        old_remaining = new_remaining = 0
        old_line = new_line = 0

        for line_number, line in enumerate(diff_text.split('\n'), start=1):
            # Inside a hunk body
            if current_hunk is not None and (old_remaining > 0 or new_remaining > 0):
                prefix = line[:1]
                if prefix == '+':
                    if new_remaining <= 0:
                        raise DiffParseError("Hunk has more added lines than its header declares", line_number)
                    current_hunk.changes.append(ChangeLine('add', line, new_line_number=new_line))
                    new_line += 1
                    new_remaining -= 1
                elif prefix == '-':
                    if old_remaining <= 0:
                        raise DiffParseError("Hunk has more removed lines than its header declares", line_number)
                    current_hunk.changes.append(ChangeLine('del', line, old_line_number=old_line))
                    old_line += 1
                    old_remaining -= 1
                elif prefix == ' ' or line == '':
                    # Some tools strip the single space from empty context lines
                    if old_remaining <= 0 or new_remaining <= 0:
                        raise DiffParseError("Hunk has more context lines than its header declares", line_number)
                    current_hunk.changes.append(
                        ChangeLine('normal', line or ' ', new_line_number=new_line, old_line_number=old_line)
                    )
                    old_line += 1
                    new_line += 1
                    old_remaining -= 1
                    new_remaining -= 1
                elif prefix == '\\':
                    pass
                else:
                    raise DiffParseError(f"Unexpected line in hunk body: {line[:40]!r}", line_number)
                current_hunk.raw_content += '\n' + line
                continue

            if line.startswith('\\') and current_hunk is not None:
                # "\ No newline at end of file" after the last hunk line
                current_hunk.raw_content += '\n' + line

            elif line.startswith('diff --git '):
                source, target = self._parse_git_header(line)
                current_file = DiffFile(source_path=source, target_path=target)
                files.append(current_file)
                current_hunk = None
                saw_source_header = False

            elif line.startswith('--- '):
                if current_file is None or saw_source_header or current_file.hunks:
                    current_file = DiffFile(source_path=None, target_path=None)
                    files.append(current_file)
                    current_hunk = None
                current_file.source_path = self._parse_path(line[4:])
                if current_file.source_path == DEV_NULL:
                    current_file.is_new = True
                saw_source_header = True

            elif line.startswith('+++ '):
                if current_file is None:
                    raise DiffParseError("Target header without a file header", line_number)
                if current_file.hunks:
                    raise DiffParseError("Target header after the file's hunks", line_number)
                current_file.target_path = self._parse_path(line[4:])

            elif line.startswith('@@'):
                if current_file is None:
                    raise DiffParseError("Hunk header before any file header", line_number)
                header_match = self.hunk_header_pattern.match(line)
                if not header_match:
                    raise DiffParseError(f"Malformed hunk header: {line!r}", line_number)

                old_start = int(header_match.group(1))
                old_count = int(header_match.group(2) or 1)
                new_start = int(header_match.group(3))
                new_count = int(header_match.group(4) or 1)

                current_hunk = DiffHunk(
                    header=line,
                    old_start=old_start,
                    old_lines=old_count,
                    new_start=new_start,
                    new_lines=new_count,
                    raw_content=line,
                )
                current_file.hunks.append(current_hunk)
                old_remaining, new_remaining = old_count, new_count
                old_line, new_line = old_start, new_start

            elif current_hunk is not None and line[:1] in ('+', '-', ' '):
                raise DiffParseError("Hunk has more lines than its header declares", line_number)

            elif current_file is not None:
                self._apply_extended_header(current_file, line)

        if current_hunk is not None and (old_remaining > 0 or new_remaining > 0):
            raise DiffParseError(
                f"Truncated hunk {current_hunk.header!r}: "
                f"{old_remaining} original and {new_remaining} final lines missing"
            )

        logger.debug(f"Parsed {len(files)} files, {sum(len(f.hunks) for f in files)} hunks")
        return files

    def _apply_extended_header(self, diff_file: DiffFile, line: str) -> None:
        """Apply git extended header lines (mode, rename, binary) to a file."""
        if line.startswith('new file mode'):
            diff_file.is_new = True
            diff_file.source_path = DEV_NULL
        elif line.startswith('deleted file mode'):
            diff_file.target_path = DEV_NULL
        elif line.startswith('rename from '):
            diff_file.source_path = line[len('rename from '):]
        elif line.startswith('rename to '):
            diff_file.target_path = line[len('rename to '):]
        elif self.binary_file_pattern.match(line):
            logger.debug(f"Binary file diff: {diff_file.display_path}")
            diff_file.is_binary = True

    def _parse_git_header(self, line: str):
        """Extract source/target paths from a ``diff --git a/x b/y`` line."""
        rest = line[len('diff --git '):].replace('"', '')
        if ' b/' in rest:
            source, target = rest.rsplit(' b/', 1)
            return self._strip_prefix(source), target
        parts = rest.split(' ', 1)
        if len(parts) == 2:
            return self._strip_prefix(parts[0]), self._strip_prefix(parts[1])
        return None, None

    def _parse_path(self, raw_path: str) -> str:
        """Normalize a ``---``/``+++`` path, dropping timestamps and a/ b/ prefixes."""
        path = raw_path.split('\t', 1)[0].strip().strip('"')
        if path == DEV_NULL:
            return DEV_NULL
        return self._strip_prefix(path)

    @staticmethod
    def _strip_prefix(path: str) -> str:
        if path.startswith('a/') or path.startswith('b/'):
            return path[2:]
        return path
