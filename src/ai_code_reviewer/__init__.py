"""
AI Code Reviewer

GitHub Pull Request diff를 hunk 단위로 나누어 LLM으로 리뷰하고
라인 코멘트로 게시하는 GitHub Action 구현체
"""

__version__ = "1.0.0"

from .api import ReviewAction

__all__ = ["ReviewAction"]
