from rest_framework import serializers

from .models import PushSubscription
from .services import MESSAGE_TYPES


class PushSubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PushSubscription
        fields = ['id', 'endpoint', 'p256dh', 'auth', 'created_at']
        read_only_fields = ['id', 'created_at']


class WhatsAppMessageSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=MESSAGE_TYPES, default='booking_confirmation')
    message = serializers.CharField(required=False, allow_blank=True)
