from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
import uuid

from venues.models import Venue, hour_of, closing_hour


class Customer(models.Model):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='customers')
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    email = models.EmailField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        indexes = [
            models.Index(fields=['owner', 'name'], name='customers_owner_i_2f9c07_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.phone})"


class Booking(models.Model):
    STATUS_BOOKED = 'booked'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_BOOKED, 'Booked'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PARTIAL = 'partial'
    PAYMENT_PAID = 'paid'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PARTIAL, 'Partial'),
        (PAYMENT_PAID, 'Paid'),
    ]

    PAYMENT_MODE_CHOICES = [
        ('cash', 'Cash'),
        ('upi', 'UPI'),
        ('card', 'Card'),
        ('bank_transfer', 'Bank transfer'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='bookings')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='bookings')
    booking_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(help_text='00:00 means midnight at the end of booking_date')
    sport_type = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_BOOKED)

    total_amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    pending_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_mode = models.CharField(max_length=20, choices=PAYMENT_MODE_CHOICES, default='cash')
    notes = models.TextField(blank=True)

    cancellation_reason = models.CharField(max_length=255, null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_bookings'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        indexes = [
            models.Index(fields=['venue', 'booking_date'], name='bookings_venue_i_7d41c3_idx'),
            models.Index(fields=['owner', 'status'], name='bookings_owner_i_e0a5b8_idx'),
        ]
        ordering = ['-booking_date', 'start_time']

    def __str__(self):
        return f"{self.venue_id} {self.booking_date} {self.start_time}-{self.end_time} ({self.status})"

    @property
    def start_hour(self):
        return hour_of(self.start_time)

    @property
    def end_hour(self):
        return closing_hour(self.end_time)

    @property
    def hours(self):
        return list(range(self.start_hour, self.end_hour))

    @property
    def occupies_slots(self):
        return self.status != self.STATUS_CANCELLED


class BookingSlot(models.Model):
    """
    One row per hour held by a non-cancelled booking. The unique constraint on
    (venue, date, hour) is what makes overlapping bookings impossible.
    """
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='slots')
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='occupied_slots')
    slot_date = models.DateField()
    hour = models.PositiveSmallIntegerField()

    class Meta:
        db_table = 'booking_slots'
        constraints = [
            models.UniqueConstraint(fields=['venue', 'slot_date', 'hour'], name='uq_booking_slot_venue_date_hour'),
        ]

    def __str__(self):
        return f"{self.venue_id} {self.slot_date} {self.hour:02d}:00"


class BookingTicket(models.Model):
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='ticket')
    ticket_code = models.CharField(max_length=16, unique=True)
    qr_data = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_tickets'

    def __str__(self):
        return self.ticket_code
