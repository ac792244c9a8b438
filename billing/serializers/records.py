from rest_framework import serializers


class VisitRefSerializer(serializers.Serializer):
    visitId = serializers.IntegerField(min_value=1)


class AssignBedSerializer(serializers.Serializer):
    visitId = serializers.IntegerField(min_value=1)
    roomId = serializers.IntegerField(min_value=1)
    bedNumber = serializers.CharField(max_length=8)
