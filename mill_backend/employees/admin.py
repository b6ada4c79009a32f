# employees/admin.py

from django.contrib import admin

from employees.models import Attendance, Employee


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "first_name", "last_name", "department", "position", "status")
    search_fields = ("employee_id", "first_name", "last_name", "email")
    list_filter = ("department", "status")
    readonly_fields = ("employee_id", "created_at", "updated_at")


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("employee", "date", "status", "check_in", "check_out", "working_hours", "overtime")
    list_filter = ("status", "date")
    search_fields = ("employee__employee_id", "employee__first_name", "employee__last_name")
    readonly_fields = ("working_hours", "overtime", "created_at", "updated_at")
