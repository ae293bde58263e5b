# students/views.py
"""
STUDENT API VIEWS - Guardian links and re-enrollment
Thin views: parse, call the service, serialize. Errors go through core.api.exception_handler.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from shared.constants import LINK_PAYLOAD_FIELDS

from .models import ReEnrollmentBatch
from .serializers import (
    StudentGuardianLinkSerializer,
    GuardianStudentLinkSerializer,
    LinkCreateSerializer,
    LinkUpdateSerializer,
    BulkReEnrollmentSerializer,
    ReEnrollmentBatchSerializer,
)
from .services import (
    GuardianLinkService,
    EligibilityEvaluator,
    ReEnrollmentQueryService,
    BulkEnrollmentService,
)

logger = logging.getLogger(__name__)


# ============ GUARDIAN LINKS ============

@api_view(['GET'])
def student_guardians_view(request, student_id):
    """Links of one student, primary first."""
    links = GuardianLinkService.list_links(student_id)
    return Response(StudentGuardianLinkSerializer(links, many=True).data)


@api_view(['POST'])
def link_create_view(request):
    serializer = LinkCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    link = GuardianLinkService.add_link(**{LINK_PAYLOAD_FIELDS[key]: value for key, value in data.items()})
    return Response(StudentGuardianLinkSerializer(link).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
def link_detail_view(request, link_id):
    if request.method == 'DELETE':
        GuardianLinkService.remove_link(link_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = LinkUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    changes = {LINK_PAYLOAD_FIELDS[key]: value for key, value in serializer.validated_data.items()}
    link = GuardianLinkService.update_link(link_id, **changes)
    return Response(StudentGuardianLinkSerializer(link).data)


@api_view(['POST'])
def link_set_primary_view(request, student_id, link_id):
    link = GuardianLinkService.set_primary(student_id, link_id)
    return Response(StudentGuardianLinkSerializer(link).data)


@api_view(['GET'])
def guardian_students_view(request, guardian_id):
    """Students linked to one guardian."""
    links = GuardianLinkService.list_students_for_guardian(guardian_id)
    return Response(GuardianStudentLinkSerializer(links, many=True).data)


# ============ RE-ENROLLMENT ============

@api_view(['GET'])
def eligible_for_reenrollment_view(request):
    target_year = EligibilityEvaluator.resolve_target_year(request.query_params.get('academicYearId'))
    candidates = EligibilityEvaluator.list_eligible(
        target_year=target_year,
        status=request.query_params.get('status') or None,
    )
    return Response([candidate.to_dict() for candidate in candidates])


@api_view(['GET'])
def reenrollment_stats_view(request):
    target_year = EligibilityEvaluator.resolve_target_year(request.query_params.get('academicYearId'))
    return Response(ReEnrollmentQueryService.get_stats(target_year))


@api_view(['POST'])
def bulk_reenrollment_view(request):
    """
    Enroll many students into the target year.
    200 with per-student results when the batch committed, 503 when it was rolled back.
    """
    serializer = BulkReEnrollmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = BulkEnrollmentService.process_batch(
        student_ids=data['studentIds'],
        academic_year_id=data['academicYearId'],
        enrollment_date=data.get('enrollmentDate'),
        submitted_by=request.user.get_username() if request.user.is_authenticated else '',
    )

    response_status = status.HTTP_200_OK if result.committed else status.HTTP_503_SERVICE_UNAVAILABLE
    return Response(result.to_dict(), status=response_status)


@api_view(['GET'])
def reenrollment_batch_detail_view(request, batch_id):
    batch = get_object_or_404(ReEnrollmentBatch, pk=batch_id)
    return Response(ReEnrollmentBatchSerializer(batch).data)
