"""
PR Diff Data Models

Pull Request diff 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import List, Optional


# unified diff에서 삭제된 파일의 대상 경로
DEV_NULL = "/dev/null"


@dataclass(frozen=True)
class ChangeRequestContext:
    """리뷰 대상 Pull Request 정보"""
    owner: str
    repository: str
    pull_number: int
    title: str = ""
    description: str = ""

    def __post_init__(self):
        """데이터 검증"""
        if self.pull_number <= 0:
            raise ValueError("PR number must be positive")
        if not self.owner or not self.repository:
            raise ValueError("Owner and repository are required")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"


@dataclass
class ChangeLine:
    """hunk 안의 개별 변경 라인"""
    change_type: str  # 'add', 'del', 'normal'
    content: str
    new_line_number: Optional[int] = None
    old_line_number: Optional[int] = None

    def __post_init__(self):
        """데이터 검증"""
        valid_types = {'add', 'del', 'normal'}
        if self.change_type not in valid_types:
            raise ValueError(f"Invalid change_type: {self.change_type}")
        if self.new_line_number is None and self.old_line_number is None:
            raise ValueError("A change line needs at least one line number")

    @property
    def resolved_line_number(self) -> int:
        """최종 버전 라인 번호, 없으면 원본 버전 라인 번호"""
        if self.new_line_number is not None:
            return self.new_line_number
        return self.old_line_number


@dataclass
class DiffHunk:
    """파일 diff의 개별 hunk"""
    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    raw_content: str = ""
    changes: List[ChangeLine] = field(default_factory=list)

    def __post_init__(self):
        """데이터 검증"""
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_lines < 0 or self.new_lines < 0:
            raise ValueError("Line counts must be non-negative")

    @property
    def resolved_line_numbers(self) -> List[int]:
        return [change.resolved_line_number for change in self.changes]

    @property
    def added_lines(self) -> List[ChangeLine]:
        return [c for c in self.changes if c.change_type == 'add']

    @property
    def removed_lines(self) -> List[ChangeLine]:
        return [c for c in self.changes if c.change_type == 'del']


@dataclass
class DiffFile:
    """파일 단위 변경사항"""
    source_path: Optional[str]
    target_path: Optional[str]
    hunks: List[DiffHunk] = field(default_factory=list)
    is_new: bool = False
    is_binary: bool = False

    @property
    def is_deleted(self) -> bool:
        """삭제된 파일 여부 확인"""
        return not self.target_path or self.target_path == DEV_NULL

    @property
    def reviewable_path(self) -> Optional[str]:
        """코멘트를 달 수 있는 경로, 삭제된 파일이면 None"""
        if self.is_deleted:
            return None
        return self.target_path

    @property
    def additions(self) -> int:
        return sum(len(h.added_lines) for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(len(h.removed_lines) for h in self.hunks)

    @property
    def display_path(self) -> str:
        if self.is_deleted:
            return self.source_path or DEV_NULL
        return self.target_path
