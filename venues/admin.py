from django.contrib import admin

from .models import Venue, BlockedSlot


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'sport_type', 'city', 'base_price', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_public', 'sport_type', 'city']
    search_fields = ['name', 'location', 'owner__email']
    ordering = ['-created_at']


@admin.register(BlockedSlot)
class BlockedSlotAdmin(admin.ModelAdmin):
    list_display = ['venue', 'block_date', 'start_time', 'end_time', 'reason']
    list_filter = ['block_date']
    search_fields = ['venue__name', 'reason']
