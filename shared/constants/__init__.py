# shared/constants/__init__.py
from .model_fields import (
    CLASS_MODEL_PATH,
    ACADEMIC_YEAR_MODEL_PATH,
    LINK_PAYLOAD_FIELDS,
    DEFAULT_RELATIONSHIP_TYPES,
    StudentStatus,
    CandidateStatus,
    SkipReason,
    BatchStatus,
)

__all__ = [
    'CLASS_MODEL_PATH',
    'ACADEMIC_YEAR_MODEL_PATH',
    'LINK_PAYLOAD_FIELDS',
    'DEFAULT_RELATIONSHIP_TYPES',
    'StudentStatus',
    'CandidateStatus',
    'SkipReason',
    'BatchStatus',
]
