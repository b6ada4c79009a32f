# employees/urls.py

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from employees.views import AttendanceViewSet, EmployeeViewSet

# "attendance" first so it is not captured as an employee <pk>.
router = SimpleRouter()
router.register(r"attendance", AttendanceViewSet, basename="attendance")
router.register(r"", EmployeeViewSet, basename="employees")

urlpatterns = [
    path("", include(router.urls)),
]
