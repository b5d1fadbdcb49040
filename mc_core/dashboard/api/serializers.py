# mc_core/dashboard/api/serializers.py
from rest_framework import serializers


class MonthlyCountSerializer(serializers.Serializer):
    month = serializers.CharField()
    count = serializers.IntegerField()


class SystemStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    total_patients = serializers.IntegerField()
    total_professionals = serializers.IntegerField()
    total_medications = serializers.IntegerField()
    total_prescriptions = serializers.IntegerField()
    total_items = serializers.IntegerField()
    completed_items = serializers.IntegerField()
    item_completion_percentage = serializers.IntegerField()
    total_intakes = serializers.IntegerField()
    taken_intakes = serializers.IntegerField()
    intake_compliance_rate = serializers.FloatField()
    monthly_prescriptions = MonthlyCountSerializer(many=True)
