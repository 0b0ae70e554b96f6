from rest_framework.routers import SimpleRouter

from .views import BookingViewSet, CustomerViewSet

router = SimpleRouter()
router.register('bookings', BookingViewSet, basename='booking')
router.register('customers', CustomerViewSet, basename='customer')

urlpatterns = router.urls
