"""
Shared package - central access to constants.
Holds no models and no services to avoid circular imports.
"""
from .constants import (
    CLASS_MODEL_PATH,
    StudentStatus,
    CandidateStatus,
    SkipReason,
    BatchStatus,
)

__all__ = [
    'CLASS_MODEL_PATH',
    'StudentStatus',
    'CandidateStatus',
    'SkipReason',
    'BatchStatus',
]
