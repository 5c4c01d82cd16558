"""
Configuration Management

시스템 설정 관리
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from pathlib import Path
import logging


def _get_input(name: str, default: Optional[str] = None) -> Optional[str]:
    """GitHub Actions 입력값(INPUT_<NAME>)을 우선 읽고, 없으면 환경 변수 사용"""
    value = os.getenv(f"INPUT_{name}")
    if value:
        return value
    return os.getenv(name, default)


def _split_patterns(value: Optional[str]) -> List[str]:
    """콤마로 구분된 glob 패턴 목록 파싱"""
    if not value:
        return []
    return [p.strip() for p in value.split(',') if p.strip()]


@dataclass
class GitHubConfig:
    """GitHub API 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30


@dataclass
class OpenAIConfig:
    """OpenAI 모델 설정"""
    api_key: Optional[str] = None
    model: str = "gpt-4"
    base_url: Optional[str] = None
    temperature: float = 0.2
    top_p: float = 1.0
    max_tokens: int = 700
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    timeout_seconds: float = 60.0


@dataclass
class ReviewConfig:
    """리뷰 생성 및 게시 설정"""
    exclude_patterns: List[str] = field(default_factory=list)
    batch_size: int = 20
    batch_interval_seconds: float = 1.0
    max_concurrent_reviews: int = 1
    drop_out_of_range_lines: bool = False
    dry_run: bool = False


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    github: GitHubConfig
    openai: OpenAIConfig
    review: ReviewConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수 및 GitHub Actions 입력값에서 설정 로드"""
        return cls(
            github=GitHubConfig(
                token=_get_input("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
            ),
            openai=OpenAIConfig(
                api_key=_get_input("OPENAI_API_KEY"),
                model=_get_input("OPENAI_API_MODEL", "gpt-4"),
                base_url=_get_input("OPENAI_BASE_URL"),
                temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.2")),
                top_p=float(os.getenv("OPENAI_TOP_P", "1.0")),
                max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "700")),
                timeout_seconds=float(os.getenv("OPENAI_TIMEOUT", "60")),
            ),
            review=ReviewConfig(
                exclude_patterns=_split_patterns(_get_input("EXCLUDE")),
                batch_size=int(os.getenv("REVIEW_BATCH_SIZE", "20")),
                batch_interval_seconds=float(os.getenv("REVIEW_BATCH_INTERVAL", "1.0")),
                max_concurrent_reviews=int(os.getenv("MAX_CONCURRENT_REVIEWS", "1")),
                drop_out_of_range_lines=os.getenv("DROP_OUT_OF_RANGE_LINES", "false").lower() == "true",
                dry_run=os.getenv("DRY_RUN", "false").lower() == "true",
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드 (비밀값이 없으면 환경 변수에서 보충)"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        config = cls(
            github=GitHubConfig(**config_data.get('github', {})),
            openai=OpenAIConfig(**config_data.get('openai', {})),
            review=ReviewConfig(**config_data.get('review', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
        )

        if isinstance(config.review.exclude_patterns, str):
            config.review.exclude_patterns = _split_patterns(config.review.exclude_patterns)

        # 토큰은 파일에 두지 않는 것을 권장
        if not config.github.token:
            config.github.token = _get_input("GITHUB_TOKEN")
        if not config.openai.api_key:
            config.openai.api_key = _get_input("OPENAI_API_KEY")

        return config

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        if not self.github.token:
            errors.append("GitHub token is required")

        if not self.openai.api_key:
            errors.append("OpenAI API key is required")

        if not self.openai.model:
            errors.append("OpenAI model is required")

        if not 0.0 <= self.openai.temperature <= 2.0:
            errors.append("Temperature must be between 0.0 and 2.0")

        if self.openai.max_tokens <= 0:
            errors.append("max_tokens must be positive")

        if self.review.batch_size <= 0:
            errors.append("Batch size must be positive")

        if self.review.batch_interval_seconds < 0:
            errors.append("Batch interval must be non-negative")

        if self.review.max_concurrent_reviews < 1:
            errors.append("max_concurrent_reviews must be at least 1")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        return {
            'github': {
                'api_base_url': self.github.api_base_url,
                'timeout_seconds': self.github.timeout_seconds,
                # 보안상 토큰은 제외
            },
            'openai': {
                'model': self.openai.model,
                'base_url': self.openai.base_url,
                'temperature': self.openai.temperature,
                'top_p': self.openai.top_p,
                'max_tokens': self.openai.max_tokens,
                'frequency_penalty': self.openai.frequency_penalty,
                'presence_penalty': self.openai.presence_penalty,
                'timeout_seconds': self.openai.timeout_seconds,
            },
            'review': {
                'exclude_patterns': list(self.review.exclude_patterns),
                'batch_size': self.review.batch_size,
                'batch_interval_seconds': self.review.batch_interval_seconds,
                'max_concurrent_reviews': self.review.max_concurrent_reviews,
                'drop_out_of_range_lines': self.review.drop_out_of_range_lines,
                'dry_run': self.review.dry_run,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
        }


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            # 루트 로거에 핸들러 추가
            root_logger = logging.getLogger()
            root_logger.addHandler(handler)
