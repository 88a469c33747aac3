import bleach
from rest_framework import serializers


class SubscriptionSerializer(serializers.Serializer):
    userIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)
    subscription = serializers.DictField()


class PatientTokensSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    phone = serializers.CharField(max_length=32)

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)
