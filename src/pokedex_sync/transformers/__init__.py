"""
Transformers that turn loosely-typed input into pipeline records.
"""

from .field_extractor import MISSING, first_present, get_nested, is_present
from .submission_parser import SubmissionParser

__all__ = [
    'MISSING',
    'first_present',
    'get_nested',
    'is_present',
    'SubmissionParser',
]
