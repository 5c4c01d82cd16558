"""
Review Data Models

코드 리뷰 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# 리뷰 생성 시 사용하는 이벤트 라벨 (승인/변경 요청이 아닌 코멘트 전용)
REVIEW_EVENT_COMMENT = "COMMENT"


class ReviewSuggestion(BaseModel):
    """LLM이 생성한 (라인, 코멘트) 쌍"""
    model_config = ConfigDict(populate_by_name=True)

    line_number: int = Field(..., alias="lineNumber")
    comment_text: str = Field(..., alias="reviewComment")

    @field_validator('line_number', mode='before')
    @classmethod
    def reject_non_numeric_line(cls, v):
        # bool은 int의 하위 타입이라 명시적으로 거부
        if isinstance(v, bool):
            raise ValueError('Line number must be numeric')
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('line_number')
    @classmethod
    def validate_line_number(cls, v):
        if v <= 0:
            raise ValueError('Line number must be positive')
        return v

    @field_validator('comment_text')
    @classmethod
    def validate_comment_text(cls, v):
        if not v.strip():
            raise ValueError('Review comment cannot be empty')
        return v.strip()


@dataclass
class GitHubComment:
    """GitHub PR 리뷰 코멘트 형식"""
    path: str
    line: int
    body: str

    def __post_init__(self):
        """데이터 검증"""
        if not self.path or not self.path.strip():
            raise ValueError("Comment path cannot be empty")

        if self.line <= 0:
            raise ValueError("Line number must be positive")

        if not self.body.strip():
            raise ValueError("Comment body cannot be empty")

    def to_dict(self) -> Dict:
        """GitHub API 요청 형식으로 변환"""
        return {'path': self.path, 'line': self.line, 'body': self.body}


@dataclass
class ReviewBatch:
    """한 번의 리뷰 생성 요청으로 전송되는 코멘트 묶음"""
    owner: str
    repository: str
    pull_number: int
    index: int
    comments: List[GitHubComment]
    event: str = REVIEW_EVENT_COMMENT

    def __post_init__(self):
        """데이터 검증"""
        if not self.comments:
            raise ValueError("A review batch must contain at least one comment")
        if self.index < 0:
            raise ValueError("Batch index must be non-negative")

    @property
    def size(self) -> int:
        return len(self.comments)


@dataclass
class BatchOutcome:
    """배치 전송 결과"""
    index: int
    size: int
    success: bool
    error: Optional[str] = None
    review_id: Optional[int] = None


@dataclass
class PublicationReport:
    """전체 배치 전송 결과"""
    outcomes: List[BatchOutcome] = field(default_factory=list)

    @property
    def total_batches(self) -> int:
        return len(self.outcomes)

    @property
    def failed_batches(self) -> List[BatchOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def published_comments(self) -> int:
        return sum(o.size for o in self.outcomes if o.success)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed_batches


@dataclass
class ReviewResult:
    """전체 리뷰 실행 결과"""
    repository: str
    pr_number: int
    status: str
    comments: List[GitHubComment]
    processing_time: float
    metadata: Dict
    created_at: datetime
    publication: Optional[PublicationReport] = None

    def __post_init__(self):
        """데이터 검증"""
        valid_statuses = {'completed', 'skipped', 'failed'}
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status: {self.status}")

        if self.processing_time < 0:
            raise ValueError("Processing time must be non-negative")

    @property
    def total_comments(self) -> int:
        return len(self.comments)

    @property
    def files_with_comments(self) -> List[str]:
        """코멘트가 달린 파일 목록 (등장 순서 유지)"""
        seen = []
        for comment in self.comments:
            if comment.path not in seen:
                seen.append(comment.path)
        return seen
