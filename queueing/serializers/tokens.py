import bleach
from rest_framework import serializers


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class TokenCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    categoryId = serializers.IntegerField(min_value=1)
    priority = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate_notes(self, v):
        return _clean(v)


class TokenStatusSerializer(serializers.Serializer):
    # Unknown names are rejected by the state machine as invalid transitions
    status = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_reason(self, v):
        return _clean(v)


class TokenCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_reason(self, v):
        return _clean(v)


class CallNextSerializer(serializers.Serializer):
    counterId = serializers.IntegerField(required=False, min_value=1)
    staffId = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if not attrs.get('counterId') and not attrs.get('staffId'):
            raise serializers.ValidationError('counterId or staffId is required')
        return attrs
