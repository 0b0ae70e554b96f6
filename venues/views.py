from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from datetime import datetime
import logging

from .models import Venue, BlockedSlot
from .permissions import IsVenueOwner
from .pricing import calculate_price
from .serializers import VenueSerializer, VenueWriteSerializer, BlockedSlotSerializer
from .services import AvailabilityService

logger = logging.getLogger(__name__)


def parse_date_param(request, name='date', required=True):
    """
    Разбирает дату YYYY-MM-DD из query-параметров
    """
    value = request.query_params.get(name)
    if not value:
        if required:
            raise ValidationError({name: f'Parameter {name} is required (format: YYYY-MM-DD)'})
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError({name: 'Invalid date format. Use YYYY-MM-DD'})


class VenueViewSet(viewsets.ModelViewSet):
    """
    ViewSet для управления площадками владельца
    """
    permission_classes = [IsVenueOwner]

    def get_permissions(self):
        if self.action == 'availability':
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        user = self.request.user
        queryset = Venue.objects.all()
        if user.role != 'admin':
            queryset = queryset.filter(owner=user)
        if self.request.query_params.get('include_inactive') != 'true':
            queryset = queryset.filter(is_active=True)
        return queryset

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return VenueWriteSerializer
        return VenueSerializer

    def perform_create(self, serializer):
        venue = serializer.save(owner=self.request.user)
        logger.info(f"Создана площадка {venue.id} владельцем {self.request.user.id}")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return Response(VenueSerializer(serializer.instance).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        venue = self.get_object()
        serializer = self.get_serializer(venue, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(VenueSerializer(venue).data)

    def destroy(self, request, *args, **kwargs):
        """
        DELETE /venues/{id} - деактивация площадки вместо удаления
        """
        venue = self.get_object()
        venue.is_active = False
        venue.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Площадка {venue.id} деактивирована")

        return Response(
            {'message': 'Venue deactivated'},
            status=status.HTTP_200_OK
        )

    @action(detail=True, methods=['get'], url_path='availability')
    def availability(self, request, pk=None):
        """
        GET /venues/{id}/availability?date=YYYY-MM-DD
        Недельная сетка слотов для недели, в которую попадает date
        """
        venue = get_object_or_404(Venue, pk=pk, is_active=True)

        user = request.user
        is_owner = user.is_authenticated and (venue.owner_id == user.id or user.role == 'admin')
        if not venue.is_public and not is_owner:
            raise NotFound('Venue not found or inactive')

        day = parse_date_param(request)
        availability_data = AvailabilityService.get_venue_availability(venue, day)
        return Response(availability_data)

    @action(detail=True, methods=['get'], url_path='price')
    def price(self, request, pk=None):
        """
        GET /venues/{id}/price?date=YYYY-MM-DD&duration_hours=N - расчет стоимости
        """
        venue = self.get_object()
        day = parse_date_param(request)
        try:
            hours = int(request.query_params.get('duration_hours', 1))
        except ValueError:
            raise ValidationError({'duration_hours': 'Must be an integer'})
        if hours < 1:
            raise ValidationError({'duration_hours': 'Must be at least 1'})

        return Response({
            'venue_id': str(venue.id),
            'date': day.isoformat(),
            'duration_hours': hours,
            'price': calculate_price(venue, hours, day),
        })


class BlockedSlotViewSet(mixins.ListModelMixin,
                         mixins.CreateModelMixin,
                         mixins.DestroyModelMixin,
                         viewsets.GenericViewSet):
    """
    Ручные блокировки: список по площадке и диапазону дат, создание, удаление
    """
    serializer_class = BlockedSlotSerializer
    permission_classes = [IsVenueOwner]

    def get_queryset(self):
        user = self.request.user
        queryset = BlockedSlot.objects.select_related('venue')
        if user.role != 'admin':
            queryset = queryset.filter(venue__owner=user)

        venue_id = self.request.query_params.get('venue')
        if venue_id:
            queryset = queryset.filter(venue_id=venue_id)

        date_from = parse_date_param(self.request, 'date_from', required=False)
        date_to = parse_date_param(self.request, 'date_to', required=False)
        if date_from:
            queryset = queryset.filter(block_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(block_date__lte=date_to)
        return queryset

    def perform_create(self, serializer):
        block = serializer.save()
        logger.info(f"Блокировка {block.pk} площадки {block.venue_id} на {block.block_date}")

    def perform_destroy(self, instance):
        logger.info(f"Снята блокировка {instance.pk} площадки {instance.venue_id}")
        instance.delete()
