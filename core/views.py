# core/views.py
"""
ACADEMIC YEAR API VIEWS
"""
import logging

from rest_framework import serializers
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .models import AcademicYear
from .services import AcademicYearService

logger = logging.getLogger(__name__)


class AcademicYearSerializer(serializers.ModelSerializer):
    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date')
    isActive = serializers.BooleanField(source='is_active')
    finalReportDate = serializers.DateField(source='final_report_date', allow_null=True)

    class Meta:
        model = AcademicYear
        fields = ['id', 'name', 'startDate', 'endDate', 'isActive', 'finalReportDate']


@api_view(['GET'])
def academic_year_list_view(request):
    years = AcademicYear.objects.all()
    return Response(AcademicYearSerializer(years, many=True).data)


@api_view(['GET'])
def current_academic_year_view(request):
    """Active year, or null when none is active."""
    year = AcademicYearService.get_active_year()
    return Response(AcademicYearSerializer(year).data if year else None)


@api_view(['POST'])
def activate_academic_year_view(request, year_id):
    year, moved = AcademicYearService.activate_year(year_id)
    data = AcademicYearSerializer(year).data
    data['studentsMoved'] = moved
    return Response(data)
