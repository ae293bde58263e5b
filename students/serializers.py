# students/serializers.py
"""
API payloads for guardian links and re-enrollment.
Field names are camelCase to match the dashboard client.
"""
from rest_framework import serializers

from .models import Guardian, Student, StudentGuardianLink, ReEnrollmentBatch


class GuardianSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')
    phone = serializers.CharField(source='phone_number', allow_blank=True)

    class Meta:
        model = Guardian
        fields = ['id', 'firstName', 'lastName', 'phone', 'email', 'address']


class StudentSummarySerializer(serializers.ModelSerializer):
    studentId = serializers.CharField(source='student_id')
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')

    class Meta:
        model = Student
        fields = ['id', 'studentId', 'firstName', 'lastName', 'status']


class StudentGuardianLinkSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id')
    guardianId = serializers.IntegerField(source='guardian_id')
    relationshipType = serializers.CharField(source='relationship_type')
    isPrimary = serializers.BooleanField(source='is_primary')
    hasEmergencyContact = serializers.BooleanField(source='has_emergency_contact')
    guardian = GuardianSerializer(read_only=True)

    class Meta:
        model = StudentGuardianLink
        fields = [
            'id', 'studentId', 'guardianId', 'relationshipType',
            'isPrimary', 'hasEmergencyContact', 'notes', 'guardian',
        ]


class GuardianStudentLinkSerializer(StudentGuardianLinkSerializer):
    student = StudentSummarySerializer(read_only=True)

    class Meta(StudentGuardianLinkSerializer.Meta):
        fields = [
            'id', 'studentId', 'guardianId', 'relationshipType',
            'isPrimary', 'hasEmergencyContact', 'notes', 'student',
        ]


# ============ REQUEST SERIALIZERS ============

class LinkCreateSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    guardianId = serializers.IntegerField()
    relationshipType = serializers.CharField(max_length=50)
    isPrimary = serializers.BooleanField(default=False)
    hasEmergencyContact = serializers.BooleanField(default=False)
    notes = serializers.CharField(allow_blank=True, required=False, default='')


class LinkUpdateSerializer(serializers.Serializer):
    relationshipType = serializers.CharField(max_length=50, required=False)
    isPrimary = serializers.BooleanField(required=False)
    hasEmergencyContact = serializers.BooleanField(required=False)
    notes = serializers.CharField(allow_blank=True, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No changes supplied.")
        return attrs


class BulkReEnrollmentSerializer(serializers.Serializer):
    studentIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    academicYearId = serializers.IntegerField()
    enrollmentDate = serializers.DateField(required=False, allow_null=True)


class ReEnrollmentBatchSerializer(serializers.ModelSerializer):
    academicYearId = serializers.IntegerField(source='academic_year_id')
    enrollmentDate = serializers.DateField(source='enrollment_date')
    studentIds = serializers.JSONField(source='submitted_student_ids')
    succeededCount = serializers.IntegerField(source='succeeded_count')
    failedCount = serializers.IntegerField(source='failed_count')
    submittedBy = serializers.CharField(source='submitted_by')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = ReEnrollmentBatch
        fields = [
            'id', 'academicYearId', 'enrollmentDate', 'status', 'studentIds',
            'succeededCount', 'failedCount', 'results', 'error', 'submittedBy', 'createdAt',
        ]
