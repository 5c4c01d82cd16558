"""
Unit tests for GitHub Integration Layer.
"""

import json
import time
import pytest
from unittest.mock import Mock, patch
import requests
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from ai_code_reviewer.github.client import GitHubClient, GitHubAPIError, RateLimitExceeded, DIFF_MEDIA_TYPE
from ai_code_reviewer.github.parser import UnifiedDiffParser, DiffParseError
from ai_code_reviewer.github.events import (
    PullRequestEvent,
    EventPayloadError,
    load_event,
    fetch_event_diff,
)
from ai_code_reviewer.models.pr_diff import DEV_NULL
from ai_code_reviewer.models.review import GitHubComment


def make_response(status_code=200, json_data=None, text="", headers=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    response.content = text.encode() or (json.dumps(json_data).encode() if json_data else b"")
    response.headers = headers or {
        "X-RateLimit-Remaining": "4999",
        "X-RateLimit-Reset": str(int(time.time()) + 3600),
    }
    return response


class TestGitHubClient:
    """Unit tests for GitHubClient class."""

    def test_client_initialization(self):
        """Test GitHubClient initialization."""
        token = "ghp_test_token_123456789"
        client = GitHubClient(token)

        assert client.token == token
        assert client.base_url == "https://api.github.com"
        assert client.session.headers["Authorization"] == f"token {token}"
        assert client.session.headers["Accept"] == "application/vnd.github.v3+json"

    def test_client_requires_token(self):
        """Test GitHubClient rejects a missing token."""
        with pytest.raises(ValueError):
            GitHubClient("")

        with pytest.raises(ValueError):
            GitHubClient(None)

    def test_get_pull_request(self):
        """Test getting pull request information."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(json_data={"number": 123, "title": "Test PR"})
            result = client.get_pull_request("owner", "repo", 123)

        assert result["number"] == 123
        method, url = mock_request.call_args[0]
        assert method == "GET"
        assert url == "https://api.github.com/repos/owner/repo/pulls/123"

    def test_get_change_request_context_defaults_null_fields(self):
        """Test null title/body become empty strings."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(json_data={"number": 5, "title": "Fix", "body": None})
            context = client.get_change_request_context("owner", "repo", 5)

        assert context.title == "Fix"
        assert context.description == ""
        assert context.pull_number == 5

    def test_get_pull_request_diff_uses_diff_media_type(self):
        """Test the diff is requested with the diff media type."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(text="diff --git a/x b/x\n")
            diff = client.get_pull_request_diff("owner", "repo", 9)

        assert diff.startswith("diff --git")
        assert mock_request.call_args[1]["headers"] == {"Accept": DIFF_MEDIA_TYPE}

    def test_compare_commits_diff(self):
        """Test commit-range diff retrieval."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(text="diff")
            client.compare_commits_diff("owner", "repo", "aaa111", "bbb222")

        url = mock_request.call_args[0][1]
        assert url.endswith("/repos/owner/repo/compare/aaa111...bbb222")

    def test_create_review_payload(self):
        """Test review creation sends comments with the COMMENT event."""
        client = GitHubClient("test_token")
        comments = [GitHubComment("src/a.py", 12, "avoid mutable global")]

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(json_data={"id": 77})
            review = client.create_review("owner", "repo", 3, comments)

        assert review["id"] == 77
        method, url = mock_request.call_args[0]
        assert method == "POST"
        assert url.endswith("/repos/owner/repo/pulls/3/reviews")
        assert mock_request.call_args[1]["json"] == {
            "comments": [{"path": "src/a.py", "line": 12, "body": "avoid mutable global"}],
            "event": "COMMENT",
        }

    def test_api_error(self):
        """Test non-2xx responses raise GitHubAPIError."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(status_code=422, json_data={"message": "Unprocessable"})
            with pytest.raises(GitHubAPIError) as exc_info:
                client.create_review("owner", "repo", 3, [GitHubComment("a.py", 1, "x")])

        assert exc_info.value.status_code == 422
        assert "Unprocessable" in str(exc_info.value)

    def test_rate_limit_response(self):
        """Test exhausted rate limit raises RateLimitExceeded."""
        client = GitHubClient("test_token")
        headers = {
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + 3600),
        }

        with patch.object(client.session, 'request') as mock_request:
            mock_request.return_value = make_response(status_code=403, headers=headers)
            with pytest.raises(RateLimitExceeded):
                client.get_pull_request("owner", "repo", 1)

        # Low remaining budget blocks further calls before they are sent
        with patch.object(client.session, 'request') as mock_request:
            with pytest.raises(RateLimitExceeded):
                client.get_pull_request("owner", "repo", 1)
            mock_request.assert_not_called()

    def test_concurrent_reviews_keep_rate_limit_consistent(self):
        """Test overlapping review submissions leave a matching remaining/reset pair."""
        client = GitHubClient("test_token")
        base = int(time.time()) + 3600

        def respond(method, url, **kwargs):
            remaining = kwargs["json"]["comments"][0]["line"] + 100
            return make_response(json_data={"id": remaining}, headers={
                "X-RateLimit-Remaining": str(remaining),
                "X-RateLimit-Reset": str(base + remaining),
            })

        comments = [[GitHubComment("a.py", line, "x")] for line in range(1, 101)]
        with patch.object(client.session, 'request', side_effect=respond):
            with ThreadPoolExecutor(max_workers=8) as pool:
                reviews = list(pool.map(lambda c: client.create_review("owner", "repo", 3, c), comments))

        assert len(reviews) == 100
        assert client.rate_limit_reset == datetime.fromtimestamp(base + client.rate_limit_remaining)

    def test_transport_error(self):
        """Test connection failures are wrapped."""
        client = GitHubClient("test_token")

        with patch.object(client.session, 'request', side_effect=requests.ConnectionError("boom")):
            with pytest.raises(GitHubAPIError):
                client.get_pull_request("owner", "repo", 1)


SAMPLE_DIFF = """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,4 +1,5 @@
 import os
+import sys

 def main():
-    pass
+    return 0
@@ -20,2 +21,3 @@ def helper():
     x = 1
+    y = 2
     return x
diff --git a/old.txt b/old.txt
deleted file mode 100644
index 1111111..0000000
--- a/old.txt
+++ /dev/null
@@ -1,2 +0,0 @@
-first
-second
diff --git a/docs/new.md b/docs/new.md
new file mode 100644
index 0000000..2222222
--- /dev/null
+++ b/docs/new.md
@@ -0,0 +1,2 @@
+# Title
+body
\\ No newline at end of file
"""


class TestUnifiedDiffParser:
    """Unit tests for UnifiedDiffParser class."""

    def setup_method(self):
        self.parser = UnifiedDiffParser()

    def test_parse_files_and_hunks(self):
        """Test file and hunk structure of a git diff."""
        files = self.parser.parse(SAMPLE_DIFF)

        assert [f.target_path for f in files] == ["src/app.py", DEV_NULL, "docs/new.md"]
        assert [len(f.hunks) for f in files] == [2, 1, 1]

    def test_line_numbers(self):
        """Test dual line numbering per change type."""
        app = self.parser.parse(SAMPLE_DIFF)[0]
        first = app.hunks[0]

        assert [c.change_type for c in first.changes] == ['normal', 'add', 'normal', 'normal', 'del', 'add']
        assert [(c.old_line_number, c.new_line_number) for c in first.changes] == [
            (1, 1), (None, 2), (2, 3), (3, 4), (4, None), (None, 5),
        ]
        assert first.resolved_line_numbers == [1, 2, 3, 4, 4, 5]

        second = app.hunks[1]
        assert second.header == "@@ -20,2 +21,3 @@ def helper():"
        assert second.resolved_line_numbers == [21, 22, 23]

    def test_raw_content_keeps_header_and_body(self):
        """Test hunk raw content is the literal hunk text."""
        hunk = self.parser.parse(SAMPLE_DIFF)[0].hunks[1]
        assert hunk.raw_content == "@@ -20,2 +21,3 @@ def helper():\n     x = 1\n+    y = 2\n     return x"

    def test_deleted_file_kept_in_parse_tree(self):
        """Test deleted files are parsed but flagged."""
        deleted = self.parser.parse(SAMPLE_DIFF)[1]

        assert deleted.is_deleted
        assert deleted.source_path == "old.txt"
        assert deleted.deletions == 2

    def test_new_file_and_no_newline_marker(self):
        """Test new files and the no-newline marker."""
        new_file = self.parser.parse(SAMPLE_DIFF)[2]

        assert new_file.is_new
        assert new_file.source_path == DEV_NULL
        assert [c.new_line_number for c in new_file.hunks[0].changes] == [1, 2]
        assert new_file.hunks[0].raw_content.endswith("\\ No newline at end of file")

    def test_plain_unified_diff(self):
        """Test diffs without git headers."""
        diff = (
            "--- a/one.py\t2024-01-01 00:00:00\n"
            "+++ b/one.py\t2024-01-02 00:00:00\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "--- a/two.py\n"
            "+++ b/two.py\n"
            "@@ -3,0 +4 @@\n"
            "+c\n"
        )
        files = self.parser.parse(diff)

        assert [f.target_path for f in files] == ["one.py", "two.py"]
        assert files[1].hunks[0].changes[0].new_line_number == 4

    def test_body_lines_that_look_like_headers(self):
        """Test removed/added lines starting with --/++ stay in the hunk."""
        diff = (
            "diff --git a/s.sql b/s.sql\n"
            "--- a/s.sql\n"
            "+++ b/s.sql\n"
            "@@ -1,2 +1,2 @@\n"
            "--- old comment\n"
            "+++ new comment\n"
            " SELECT 1;\n"
        )
        files = self.parser.parse(diff)

        assert len(files) == 1
        changes = files[0].hunks[0].changes
        assert [c.change_type for c in changes] == ['del', 'add', 'normal']
        assert changes[0].content == "--- old comment"

    def test_binary_and_rename(self):
        """Test binary files and pure renames have no hunks."""
        diff = (
            "diff --git a/img.png b/img.png\n"
            "index 1..2 100644\n"
            "Binary files a/img.png and b/img.png differ\n"
            "diff --git a/a.py b/b.py\n"
            "similarity index 100%\n"
            "rename from a.py\n"
            "rename to b.py\n"
        )
        files = self.parser.parse(diff)

        assert files[0].is_binary
        assert files[0].hunks == []
        assert (files[1].source_path, files[1].target_path) == ("a.py", "b.py")

    def test_empty_diff(self):
        """Test an empty diff has no files."""
        assert self.parser.parse("") == []
        assert self.parser.parse("\n\n") == []

    @pytest.mark.parametrize("diff", [
        "@@ -1 +1 @@\n-a\n+b\n",
        "--- a/x\n+++ b/x\n@@ -1 +1 @ broken\n-a\n+b\n",
        "--- a/x\n+++ b/x\n@@ -1,3 +1,3 @@\n a\n",
        "--- a/x\n+++ b/x\n@@ -1,2 +1,2 @@\n a\n*b\n",
        "--- a/x\n+++ b/x\n@@ -1 +1,2 @@\n-a\n-b\n",
    ])
    def test_malformed_diff(self, diff):
        """Test malformed diffs raise DiffParseError."""
        with pytest.raises(DiffParseError):
            self.parser.parse(diff)

    @pytest.mark.parametrize("extra", ["+c", "-c", " c", "+++ counter"])
    def test_lines_beyond_hunk_counts(self, extra):
        """Test lines past a completed hunk are rejected, not dropped."""
        diff = (
            "diff --git a/a.py b/a.py\n"
            "--- a/a.py\n"
            "+++ b/a.py\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            f"{extra}\n"
        )
        with pytest.raises(DiffParseError):
            self.parser.parse(diff)

    def test_target_header_after_hunks(self):
        """Test a second target header cannot rename a file that has hunks."""
        diff = (
            "--- a/a.py\n"
            "+++ b/a.py\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "\\ No newline at end of file\n"
            "+++ b/other.py\n"
        )
        with pytest.raises(DiffParseError) as exc_info:
            self.parser.parse(diff)

        assert exc_info.value.line_number == 7


class TestEvents:
    """Unit tests for event payload handling."""

    def payload(self, **overrides):
        data = {
            "action": "opened",
            "number": 42,
            "repository": {"name": "repo", "owner": {"login": "octo"}},
        }
        data.update(overrides)
        return data

    def test_load_event(self, tmp_path):
        """Test reading the event payload file."""
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps(self.payload(action="synchronize", before="a1", after="b2")))

        event = load_event(str(event_file))

        assert event == PullRequestEvent("synchronize", "octo", "repo", 42, "a1", "b2")
        assert event.is_supported

    def test_pull_request_number_fallback(self):
        """Test the number can come from the pull_request object."""
        data = self.payload()
        del data["number"]
        data["pull_request"] = {"number": 8}

        assert PullRequestEvent.from_payload(data).pull_number == 8

    @pytest.mark.parametrize("content", ["not json", "{}", '{"repository": {"name": "r"}, "number": 1}'])
    def test_invalid_payload(self, tmp_path, content):
        """Test unreadable payloads raise EventPayloadError."""
        event_file = tmp_path / "event.json"
        event_file.write_text(content)

        with pytest.raises(EventPayloadError):
            load_event(str(event_file))

    def test_missing_payload_path(self, tmp_path):
        """Test missing payload files raise EventPayloadError."""
        with pytest.raises(EventPayloadError):
            load_event(None)
        with pytest.raises(EventPayloadError):
            load_event(str(tmp_path / "missing.json"))

    def test_fetch_event_diff_by_action(self):
        """Test the diff source follows the event action."""
        client = Mock()
        client.get_pull_request_diff.return_value = "pr diff"
        client.compare_commits_diff.return_value = "range diff"

        opened = PullRequestEvent("opened", "octo", "repo", 1)
        synced = PullRequestEvent("synchronize", "octo", "repo", 1, "a1", "b2")
        closed = PullRequestEvent("closed", "octo", "repo", 1)

        assert fetch_event_diff(client, opened) == "pr diff"
        assert fetch_event_diff(client, synced) == "range diff"
        client.compare_commits_diff.assert_called_once_with("octo", "repo", "a1", "b2")
        assert fetch_event_diff(client, closed) is None
        assert not closed.is_supported

    def test_synchronize_without_shas(self):
        """Test synchronize events need both commit SHAs."""
        with pytest.raises(EventPayloadError):
            fetch_event_diff(Mock(), PullRequestEvent("synchronize", "octo", "repo", 1, None, "b2"))
