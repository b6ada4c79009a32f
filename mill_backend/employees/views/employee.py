# employees/views/employee.py

from django.db.models import Q
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from employees.models import Employee
from employees.serializers import EmployeeSerializer
from permissions.roles import CAP_STAFF_MANAGE, CAP_STAFF_VIEW, HasAnyCapability, HasCapability


class StaffPermissionMixin:
    """read: staff.view or staff.manage / write: staff.manage"""

    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    write_actions = {"create", "update", "partial_update", "destroy"}

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in self.write_actions:
            self.required_capability = CAP_STAFF_MANAGE
            return [IsAuthenticated(), HasCapability()]

        self.required_any_capabilities = {CAP_STAFF_VIEW, CAP_STAFF_MANAGE}
        return [IsAuthenticated(), HasAnyCapability()]


class EmployeeViewSet(StaffPermissionMixin, viewsets.ModelViewSet):
    """
    Employee registry.

    Employees are never hard-deleted (attendance history); set status to
    inactive / terminated instead.
    """

    serializer_class = EmployeeSerializer
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["department", "status", "warehouse"]

    def get_queryset(self):
        qs = Employee.objects.select_related("warehouse").order_by("employee_id")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(first_name__icontains=q)
                | Q(last_name__icontains=q)
                | Q(employee_id__icontains=q)
                | Q(email__icontains=q)
            )
        return qs
