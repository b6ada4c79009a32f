# employees/serializers/employee.py

from rest_framework import serializers

from employees.models import Employee


class EmployeeSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True, default=None)

    class Meta:
        model = Employee
        fields = [
            "id",
            "employee_id",
            "first_name",
            "last_name",
            "full_name",
            "email",
            "phone",
            "address",
            "department",
            "position",
            "hire_date",
            "salary",
            "status",
            "warehouse",
            "warehouse_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "employee_id", "created_at", "updated_at"]
