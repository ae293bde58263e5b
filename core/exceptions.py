# core/exceptions.py
class SchoolManagementException(Exception):
    """Base exception for all school management system errors."""

    status_code = 400

    def __init__(self, message=None, user_friendly=False, details=None, error_code=None):
        self.message = message or "An error occurred"
        self.user_friendly = user_friendly
        self.details = details or {}
        self.error_code = error_code or "SCHOOL_ERROR"
        super().__init__(self.message)

    def to_payload(self):
        """JSON body for API clients; internal messages are not exposed."""
        return {
            'error': self.error_code,
            'message': self.message if self.user_friendly else "Operation failed.",
            'details': self.details,
        }


class ValidationError(SchoolManagementException):
    """Data validation errors."""
    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Validation failed", user_friendly, details, "VALIDATION_ERROR")


# ============ RELATIONSHIP ERRORS ============

class DuplicateLink(SchoolManagementException):
    """The (student, guardian) pair is already linked."""
    status_code = 409

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Guardian is already linked to this student", user_friendly, details, "DUPLICATE_LINK")


class LinkNotFound(SchoolManagementException):
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Student-guardian link not found", user_friendly, details, "LINK_NOT_FOUND")


class NotLinkedToStudent(SchoolManagementException):
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Link does not belong to this student", user_friendly, details, "NOT_LINKED_TO_STUDENT")


class PrimaryInvariantViolation(SchoolManagementException):
    """More than one primary guardian reached storage. Indicates a bug, not user error."""
    status_code = 500

    def __init__(self, message=None, user_friendly=False, details=None):
        super().__init__(message or "Primary guardian invariant violated", user_friendly, details, "PRIMARY_INVARIANT_VIOLATION")


class StudentNotFound(SchoolManagementException):
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Student not found", user_friendly, details, "STUDENT_NOT_FOUND")


class GuardianNotFound(SchoolManagementException):
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Guardian not found", user_friendly, details, "GUARDIAN_NOT_FOUND")


# ============ ENROLLMENT ERRORS ============

class AcademicYearNotFound(SchoolManagementException):
    status_code = 404

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Academic year not found", user_friendly, details, "ACADEMIC_YEAR_NOT_FOUND")


class NoTargetYear(SchoolManagementException):
    status_code = 422

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "No next academic year defined", user_friendly, details, "NO_TARGET_YEAR")


class ReEnrollmentClosed(SchoolManagementException):
    """Final reports of the current year are not out yet."""
    status_code = 409

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Re-enrollment opens after the final report date", user_friendly, details, "REENROLLMENT_CLOSED")


class AlreadyEnrolled(SchoolManagementException):
    """Per-student skip inside a batch; never fails the batch itself."""
    status_code = 409

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Student is already enrolled for this academic year", user_friendly, details, "ALREADY_ENROLLED")


class StorageUnavailable(SchoolManagementException):
    """Transient storage failure. Safe for the caller to retry the whole call."""
    status_code = 503

    def __init__(self, message=None, user_friendly=True, details=None):
        super().__init__(message or "Storage temporarily unavailable, please retry", user_friendly, details, "STORAGE_UNAVAILABLE")
