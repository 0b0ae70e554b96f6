from django.contrib import admin
from .models import Customer, Booking, BookingSlot, BookingTicket


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'owner', 'created_at']
    search_fields = ['name', 'phone', 'email']
    ordering = ['name']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['customer', 'venue', 'booking_date', 'start_time', 'end_time', 'status', 'payment_status', 'total_amount']
    list_filter = ['status', 'payment_status', 'venue', 'booking_date']
    search_fields = ['customer__name', 'customer__phone', 'venue__name']
    ordering = ['-booking_date', 'start_time']
    readonly_fields = ['pending_amount', 'payment_status', 'cancelled_at', 'cancelled_by', 'created_at', 'updated_at']


@admin.register(BookingSlot)
class BookingSlotAdmin(admin.ModelAdmin):
    list_display = ['venue', 'slot_date', 'hour', 'booking']
    list_filter = ['venue', 'slot_date']


@admin.register(BookingTicket)
class BookingTicketAdmin(admin.ModelAdmin):
    list_display = ['ticket_code', 'booking', 'created_at']
    search_fields = ['ticket_code']
    readonly_fields = ['qr_data', 'created_at']
