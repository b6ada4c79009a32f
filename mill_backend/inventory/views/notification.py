# inventory/views/notification.py

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.models import Notification
from inventory.serializers import NotificationSerializer
from inventory.services import notifications as notification_service
from permissions.roles import CAP_INVENTORY_EDIT, CAP_INVENTORY_VIEW, HasAnyCapability


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bell-icon notifications.

    - GET   /api/inventory/notifications/?status=unread&type=low_stock
    - GET   /api/inventory/notifications/unread-count/
    - PATCH /api/inventory/notifications/<id>/read/
    - PATCH /api/inventory/notifications/<id>/resolve/
    - PATCH /api/inventory/notifications/read-all/
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated, HasAnyCapability]
    required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_INVENTORY_EDIT}
    filterset_fields = ["status", "type", "priority", "inventory_item"]

    def get_queryset(self):
        return Notification.objects.all().order_by("-created_at")

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = Notification.objects.filter(status=Notification.Status.UNREAD).count()
        return Response({"unread": count})

    @extend_schema(request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=["patch"], url_path="read")
    def read(self, request, pk=None):
        notification = notification_service.mark_read(self.get_object())
        return Response(NotificationSerializer(notification).data)

    @extend_schema(request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=["patch"], url_path="resolve")
    def resolve(self, request, pk=None):
        notification = notification_service.resolve(self.get_object())
        return Response(NotificationSerializer(notification).data)

    @extend_schema(request=None)
    @action(detail=False, methods=["patch"], url_path="read-all")
    def read_all(self, request):
        updated = notification_service.mark_all_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)
