"""
LLM Review Engine

This module provides per-hunk prompt construction and OpenAI-backed
review generation with validated response decoding.
"""

from .prompts import PromptBuilder
from .generator import ReviewGenerator, GenerationConfig, ReviewResponseError, parse_review_response

__all__ = [
    'PromptBuilder',
    'ReviewGenerator',
    'GenerationConfig',
    'ReviewResponseError',
    'parse_review_response',
]
