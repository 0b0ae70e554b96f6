from rest_framework import serializers

from .models import Venue, BlockedSlot, hour_of, closing_hour


class VenueSerializer(serializers.ModelSerializer):
    """Сериализатор для площадки"""

    class Meta:
        model = Venue
        fields = [
            'id', 'name', 'sport_type', 'location', 'city', 'whatsapp_number',
            'operating_hours_start', 'operating_hours_end', 'slot_duration',
            'base_price', 'price_1h', 'price_2h', 'price_3h',
            'weekday_price', 'weekend_price',
            'is_active', 'is_public', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class VenueWriteSerializer(serializers.ModelSerializer):
    """Сериализатор для создания и обновления площадки"""

    class Meta:
        model = Venue
        fields = [
            'name', 'sport_type', 'location', 'city', 'whatsapp_number',
            'operating_hours_start', 'operating_hours_end', 'slot_duration',
            'base_price', 'price_1h', 'price_2h', 'price_3h',
            'weekday_price', 'weekend_price', 'is_active', 'is_public'
        ]

    def validate_slot_duration(self, value):
        # Сетка строится только из целых часов
        if value <= 0 or value % 60:
            raise serializers.ValidationError('Slot duration must be a whole number of hours')
        return value

    def validate(self, attrs):
        start = attrs.get('operating_hours_start', getattr(self.instance, 'operating_hours_start', None))
        end = attrs.get('operating_hours_end', getattr(self.instance, 'operating_hours_end', None))
        if start is not None and end is not None and hour_of(start) >= closing_hour(end):
            raise serializers.ValidationError(
                {'operating_hours_end': 'Closing hour must be after opening hour'}
            )
        return attrs


class BlockedSlotSerializer(serializers.ModelSerializer):
    """Сериализатор ручной блокировки"""

    class Meta:
        model = BlockedSlot
        fields = ['id', 'venue', 'block_date', 'start_time', 'end_time', 'reason', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_venue(self, venue):
        user = self.context['request'].user
        if venue.owner_id != user.id and user.role != 'admin':
            raise serializers.ValidationError('Venue not found')
        return venue

    def validate(self, attrs):
        if hour_of(attrs['start_time']) >= closing_hour(attrs['end_time']):
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        return attrs
