from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('auth_app.urls')),
    path('api/', include('venues.urls')),
    path('api/', include('bookings.urls')),
    path('api/', include('notifications.urls')),
]
