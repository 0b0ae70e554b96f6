from django.db.models import Q
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import logging

from notifications.dispatch import whatsapp_payload
from notifications.serializers import WhatsAppMessageSerializer
from notifications.services import send_whatsapp_message
from venues.models import hour_of
from venues.permissions import IsVenueOwner
from venues.views import parse_date_param
from .holds import SlotHoldService
from .models import Booking, Customer
from .serializers import (
    BookingSerializer, BookingWriteSerializer, BookingCancelSerializer,
    PaymentSerializer, CustomerSerializer,
    BookingHoldSerializer, BookingReleaseHoldSerializer
)
from .services import BookingService

logger = logging.getLogger(__name__)


class CustomerViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      mixins.CreateModelMixin,
                      viewsets.GenericViewSet):
    """
    Клиенты владельца (список для выбора в форме брони)
    """
    serializer_class = CustomerSerializer

    def get_queryset(self):
        queryset = Customer.objects.filter(owner=self.request.user)
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search))
        return queryset

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)


class BookingViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """
    ViewSet броней владельца
    """
    serializer_class = BookingSerializer
    permission_classes = [IsVenueOwner]

    def get_permissions(self):
        if self.action in ['hold', 'release_hold']:
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related('venue', 'customer', 'ticket')
        if user.role != 'admin':
            queryset = queryset.filter(venue__owner=user)

        params = self.request.query_params
        if params.get('venue'):
            queryset = queryset.filter(venue_id=params['venue'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])

        date_from = parse_date_param(self.request, 'date_from', required=False)
        date_to = parse_date_param(self.request, 'date_to', required=False)
        if date_from:
            queryset = queryset.filter(booking_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(booking_date__lte=date_to)
        return queryset

    def _write(self, request, booking=None):
        serializer = BookingWriteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        booking = BookingService.create_or_update(request.user, serializer.validated_data, booking=booking)
        return BookingSerializer(booking).data

    def create(self, request):
        """
        POST /bookings - новая бронь
        """
        return Response(self._write(request), status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        """
        PUT /bookings/{id} - изменение брони
        """
        booking = self.get_object()
        return Response(self._write(request, booking=booking))

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        BookingService.cancel(booking, serializer.validated_data['reason'], cancelled_by=request.user)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        booking = BookingService.complete(self.get_object())
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def payment(self, request, pk=None):
        """
        POST /bookings/{id}/payment - фиксация оплаты
        """
        booking = self.get_object()
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        BookingService.record_payment(
            booking,
            serializer.validated_data['amount'],
            serializer.validated_data.get('payment_mode')
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def whatsapp(self, request, pk=None):
        """
        POST /bookings/{id}/whatsapp - сообщение клиенту (или ссылка wa.me)
        """
        booking = self.get_object()
        serializer = WhatsAppMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payload = whatsapp_payload(booking, serializer.validated_data['type'])
        if serializer.validated_data.get('message'):
            payload['message'] = serializer.validated_data['message']
        return Response(send_whatsapp_message(payload))

    @action(detail=False, methods=['post'])
    def hold(self, request):
        """
        POST /bookings/hold - удержание слотов на время оформления
        """
        serializer = BookingHoldSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        venue = self._bookable_venue(request, data['venue'])
        BookingService.validate_interval(venue, data['start_time'], data['duration_hours'])

        hold = SlotHoldService.acquire(
            venue, data['booking_date'], hour_of(data['start_time']), data['duration_hours']
        )
        return Response(hold, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='release-hold')
    def release_hold(self, request):
        serializer = BookingReleaseHoldSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        venue = self._bookable_venue(request, data['venue'])

        released = SlotHoldService.release(
            venue, data['booking_date'], hour_of(data['start_time']), data['duration_hours'], data['token']
        )
        return Response({'released': released})

    def _bookable_venue(self, request, venue):
        user = request.user
        is_owner = user.is_authenticated and (venue.owner_id == user.id or user.role == 'admin')
        if not venue.is_public and not is_owner:
            raise NotFound('Venue not found or inactive')
        return venue
