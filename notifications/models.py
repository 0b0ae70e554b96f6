from django.db import models
from django.conf import settings


class PushSubscription(models.Model):
    """Web-push подписка браузера владельца площадки"""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='push_subscriptions')
    endpoint = models.URLField(max_length=500)
    p256dh = models.CharField(max_length=255)
    auth = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'push_subscriptions'
        constraints = [
            models.UniqueConstraint(fields=['user', 'endpoint'], name='uq_push_subscription_user_endpoint'),
        ]

    def __str__(self):
        return f"{self.user_id}: {self.endpoint[:50]}"
