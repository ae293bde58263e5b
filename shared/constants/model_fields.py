# shared/constants/model_fields.py

"""
CONSTANT field names and choice values shared by core and students.
NO DEPENDENCIES - safe to import from models, services and views.
"""

# This keeps every class reference pointing at the same model
CLASS_MODEL_PATH = 'core.Class'
ACADEMIC_YEAR_MODEL_PATH = 'core.AcademicYear'

# Request payload (camelCase) → service keyword mapping
LINK_PAYLOAD_FIELDS = {
    'studentId': 'student_id',
    'guardianId': 'guardian_id',
    'relationshipType': 'relationship_type',
    'isPrimary': 'is_primary',
    'hasEmergencyContact': 'has_emergency_contact',
    'notes': 'notes',
}

DEFAULT_RELATIONSHIP_TYPES = ('parent', 'guardian', 'grandparent', 'sibling', 'other')


class StudentStatus:
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    GRADUATED = 'graduated'
    WITHDRAWN = 'withdrawn'

    CHOICES = (
        (ACTIVE, 'Active'),
        (INACTIVE, 'Inactive'),
        (GRADUATED, 'Graduated'),
        (WITHDRAWN, 'Withdrawn'),
    )


class CandidateStatus:
    ELIGIBLE = 'eligible'
    PASSED = 'passed'
    FAILED = 'failed'
    ENROLLED = 'enrolled'

    # enrolled is only ever reached through a committed batch
    FILTERABLE = (ELIGIBLE, PASSED, FAILED)


class SkipReason:
    ALREADY_ENROLLED = 'ALREADY_ENROLLED'
    STUDENT_NOT_FOUND = 'STUDENT_NOT_FOUND'
    STUDENT_INACTIVE = 'STUDENT_INACTIVE'
    NOT_EVALUATED = 'NOT_EVALUATED'
    NO_NEXT_CLASS = 'NO_NEXT_CLASS'
    CANCELLED = 'CANCELLED'
    STORAGE_UNAVAILABLE = 'STORAGE_UNAVAILABLE'


class BatchStatus:
    COMMITTED = 'committed'
    ROLLED_BACK = 'rolled_back'
    CANCELLED = 'cancelled'

    CHOICES = (
        (COMMITTED, 'Committed'),
        (ROLLED_BACK, 'Rolled back'),
        (CANCELLED, 'Cancelled'),
    )
