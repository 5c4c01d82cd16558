"""
Review Processing

This module drives per-hunk analysis of a parsed diff and maps
model suggestions to GitHub review comments.
"""

from .analyzer import DiffAnalyzer
from .mapper import CommentMapper

__all__ = ['DiffAnalyzer', 'CommentMapper']
