from rest_framework import viewsets, mixins, status
from rest_framework.response import Response
import logging

from .models import PushSubscription
from .serializers import PushSubscriptionSerializer

logger = logging.getLogger(__name__)


class PushSubscriptionViewSet(mixins.ListModelMixin,
                              mixins.CreateModelMixin,
                              mixins.DestroyModelMixin,
                              viewsets.GenericViewSet):
    """
    Web-push подписки текущего пользователя
    """
    serializer_class = PushSubscriptionSerializer

    def get_queryset(self):
        return PushSubscription.objects.filter(user=self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # Повторная подписка того же браузера обновляет ключи
        subscription, created = PushSubscription.objects.update_or_create(
            user=request.user,
            endpoint=serializer.validated_data['endpoint'],
            defaults={
                'p256dh': serializer.validated_data['p256dh'],
                'auth': serializer.validated_data['auth'],
            },
        )
        if created:
            logger.info(f"Новая push-подписка пользователя {request.user.id}")

        return Response(
            PushSubscriptionSerializer(subscription).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )
