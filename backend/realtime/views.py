from __future__ import annotations

from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from realtime.fanout import default_fanout


class GroupBroadcastSerializer(serializers.Serializer):
    group = serializers.CharField(max_length=80)
    event = serializers.CharField(max_length=100)
    message = serializers.JSONField()


class UserMessageSerializer(serializers.Serializer):
    user_id = serializers.CharField(max_length=255)
    event = serializers.CharField(max_length=100)
    message = serializers.JSONField()


class GroupBroadcastView(APIView):
    def post(self, request):
        serializer = GroupBroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        delivered = default_fanout.publish_to_group(data["group"], data["event"], data["message"])
        return Response({"published": delivered}, status=status.HTTP_202_ACCEPTED)


class UserMessageView(APIView):
    def post(self, request):
        serializer = UserMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        delivered = default_fanout.publish_to_user(data["user_id"], data["event"], data["message"])
        return Response({"published": delivered}, status=status.HTTP_202_ACCEPTED)
