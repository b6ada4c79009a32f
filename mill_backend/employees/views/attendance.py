# employees/views/attendance.py

from django.core.exceptions import ValidationError
from django.http import Http404
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from employees.models import Attendance, Employee
from employees.serializers import (
    AttendanceMarkSerializer,
    AttendanceSerializer,
    BulkAttendanceSerializer,
)
from employees.services.attendance import (
    AttendanceError,
    bulk_mark_attendance,
    mark_attendance,
    monthly_summary,
)
from employees.views.employee import StaffPermissionMixin


class AttendanceViewSet(
    StaffPermissionMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    - GET  /api/employees/attendance/?employee=&date=&date_from=&date_to=&status=
    - POST /api/employees/attendance/            (upsert one employee/date)
    - POST /api/employees/attendance/bulk-mark/  (upsert many for one date)
    - GET  /api/employees/attendance/summary/?employee=<id>&year=&month=
    """

    serializer_class = AttendanceSerializer
    write_actions = {"create", "bulk_mark"}
    filterset_fields = ["employee", "date", "status"]

    def get_queryset(self):
        qs = Attendance.objects.select_related("employee").order_by("-date", "employee__employee_id")

        date_from = parse_date((self.request.query_params.get("date_from") or "").strip())
        if date_from:
            qs = qs.filter(date__gte=date_from)

        date_to = parse_date((self.request.query_params.get("date_to") or "").strip())
        if date_to:
            qs = qs.filter(date__lte=date_to)

        return qs

    @extend_schema(request=AttendanceMarkSerializer, responses={201: AttendanceSerializer})
    def create(self, request, *args, **kwargs):
        ser = AttendanceMarkSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            record, created = mark_attendance(
                employee=data["employee_id"],
                date=data["date"],
                status=data["status"],
                check_in=data.get("check_in"),
                check_out=data.get("check_out"),
                notes=data.get("notes", ""),
                user=request.user,
            )
        except AttendanceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
        return Response(AttendanceSerializer(record).data, status=code)

    @extend_schema(request=BulkAttendanceSerializer)
    @action(detail=False, methods=["post"], url_path="bulk-mark")
    def bulk_mark(self, request):
        ser = BulkAttendanceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = bulk_mark_attendance(
            date=ser.validated_data["date"],
            records=ser.validated_data["records"],
            user=request.user,
        )
        return Response(
            {
                "date": ser.validated_data["date"],
                "created": result.created,
                "updated": result.updated,
                "errors": result.errors,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        parameters=[
            OpenApiParameter("employee", str, required=True),
            OpenApiParameter("year", int, required=True),
            OpenApiParameter("month", int, required=True),
        ],
    )
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        params = request.query_params
        try:
            employee = get_object_or_404(Employee, pk=(params.get("employee") or "").strip() or None)
        except ValidationError:
            raise Http404("Employee not found")

        try:
            year = int(params.get("year"))
            month = int(params.get("month"))
        except (TypeError, ValueError):
            return Response(
                {"detail": "year and month are required integers"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            data = monthly_summary(employee=employee, year=year, month=month)
        except AttendanceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(data, status=status.HTTP_200_OK)
