from rest_framework.routers import SimpleRouter

from .views import VenueViewSet, BlockedSlotViewSet

router = SimpleRouter()
router.register('venues', VenueViewSet, basename='venue')
router.register('blocked-slots', BlockedSlotViewSet, basename='blocked-slot')

urlpatterns = router.urls
