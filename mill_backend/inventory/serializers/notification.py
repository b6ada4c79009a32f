# inventory/serializers/notification.py

from rest_framework import serializers

from inventory.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "type",
            "priority",
            "status",
            "title",
            "message",
            "inventory_item",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "type",
            "priority",
            "title",
            "message",
            "inventory_item",
            "created_at",
            "updated_at",
        ]
