# employees/serializers/attendance.py

from rest_framework import serializers

from employees.models import Attendance


class AttendanceSerializer(serializers.ModelSerializer):
    employee_code = serializers.CharField(source="employee.employee_id", read_only=True)
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)

    class Meta:
        model = Attendance
        fields = [
            "id",
            "employee",
            "employee_code",
            "employee_name",
            "date",
            "status",
            "check_in",
            "check_out",
            "working_hours",
            "overtime",
            "notes",
            "marked_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AttendanceMarkSerializer(serializers.Serializer):
    employee_id = serializers.UUIDField()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=Attendance.Status.choices)
    check_in = serializers.TimeField(required=False, allow_null=True)
    check_out = serializers.TimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BulkAttendanceRecordSerializer(serializers.Serializer):
    employee_id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=Attendance.Status.choices)
    check_in = serializers.TimeField(required=False, allow_null=True)
    check_out = serializers.TimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BulkAttendanceSerializer(serializers.Serializer):
    date = serializers.DateField()
    records = BulkAttendanceRecordSerializer(many=True, allow_empty=False)
