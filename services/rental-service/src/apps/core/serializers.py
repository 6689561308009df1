"""Rental Service Serializers."""
from rest_framework import serializers

from apps.core.services import BookingRequest


class BookingRequestSerializer(serializers.Serializer):
    """
    Booking form payload.

    Fields are accepted blank here; the booking validator reports the
    per-field messages.
    """
    startDate = serializers.CharField(required=False, allow_blank=True, default='')
    endDate = serializers.CharField(required=False, allow_blank=True, default='')
    deliveryAddress = serializers.CharField(required=False, allow_blank=True, default='')
    deliveryCity = serializers.CharField(required=False, allow_blank=True, default='')
    customerEmail = serializers.CharField(required=False, allow_blank=True, default='')
    customerName = serializers.CharField(required=False, allow_blank=True, default='')

    def to_booking_request(self) -> BookingRequest:
        return BookingRequest.from_payload(self.validated_data)


class ValidateStepSerializer(BookingRequestSerializer):
    step = serializers.ChoiceField(choices=['dates', 'address', 'all'], default='all')


class PricingQuoteSerializer(serializers.Serializer):
    startDate = serializers.CharField()
    endDate = serializers.CharField()
    deliveryCity = serializers.CharField(required=False, allow_blank=True, default='')


class AvailabilityQuerySerializer(serializers.Serializer):
    startDate = serializers.CharField(required=False, allow_blank=True, default='')
    endDate = serializers.CharField(required=False, allow_blank=True, default='')
