from rest_framework import serializers

from venues.models import Venue
from .models import Customer, Booking


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'phone', 'email', 'created_at']
        read_only_fields = ['id', 'created_at']


class NewCustomerSerializer(serializers.Serializer):
    # Обязательность имени и телефона проверяет BookingService
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)


class OwnedVenueField(serializers.PrimaryKeyRelatedField):
    def get_queryset(self):
        user = self.context['request'].user
        queryset = Venue.objects.filter(is_active=True)
        if user.role != 'admin':
            queryset = queryset.filter(owner=user)
        return queryset


class OwnedCustomerField(serializers.PrimaryKeyRelatedField):
    def get_queryset(self):
        return Customer.objects.filter(owner=self.context['request'].user)


def validate_on_the_hour(value):
    if value.minute or value.second:
        raise serializers.ValidationError('Bookings start on the hour')


class BookingWriteSerializer(serializers.Serializer):
    customer = OwnedCustomerField(required=False, allow_null=True)
    new_customer = NewCustomerSerializer(required=False, allow_null=True)
    venue = OwnedVenueField()
    booking_date = serializers.DateField()
    start_time = serializers.TimeField(validators=[validate_on_the_hour])
    duration_hours = serializers.IntegerField(min_value=1, max_value=4, default=1)
    discount_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    advance_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    paid_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    payment_mode = serializers.ChoiceField(choices=Booking.PAYMENT_MODE_CHOICES, default='cash')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    hold_token = serializers.CharField(required=False, allow_blank=True)


class BookingSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_phone = serializers.CharField(source='customer.phone', read_only=True)
    venue_name = serializers.CharField(source='venue.name', read_only=True)
    duration_hours = serializers.SerializerMethodField()
    ticket_code = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id', 'venue', 'venue_name', 'customer', 'customer_name', 'customer_phone',
            'booking_date', 'start_time', 'end_time', 'duration_hours', 'sport_type', 'status',
            'total_amount', 'discount_amount', 'paid_amount', 'pending_amount',
            'payment_status', 'payment_mode', 'notes',
            'cancellation_reason', 'cancelled_at', 'ticket_code',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_duration_hours(self, obj):
        return obj.end_hour - obj.start_hour

    def get_ticket_code(self, obj):
        ticket = getattr(obj, 'ticket', None)
        return ticket.ticket_code if ticket else None


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    payment_mode = serializers.ChoiceField(choices=Booking.PAYMENT_MODE_CHOICES, required=False)


class BookingHoldSerializer(serializers.Serializer):
    venue = serializers.PrimaryKeyRelatedField(queryset=Venue.objects.filter(is_active=True))
    booking_date = serializers.DateField()
    start_time = serializers.TimeField(validators=[validate_on_the_hour])
    duration_hours = serializers.IntegerField(min_value=1, max_value=4, default=1)


class BookingReleaseHoldSerializer(BookingHoldSerializer):
    token = serializers.CharField(max_length=255)
