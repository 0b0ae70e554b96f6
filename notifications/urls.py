from rest_framework.routers import SimpleRouter

from .views import PushSubscriptionViewSet

router = SimpleRouter()
router.register('notifications/subscriptions', PushSubscriptionViewSet, basename='push-subscription')

urlpatterns = router.urls
