from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from transports_mqtt.config import get_mqtt_connection, mask_mqtt_connection
from transports_mqtt.manager import mqtt_connection_manager


class MqttStatusView(APIView):
    def get(self, request):
        """Return the device transport's connection status and (masked) settings."""
        body = mqtt_connection_manager.get_status().as_dict()
        body["settings"] = mask_mqtt_connection(get_mqtt_connection())
        return Response(body, status=status.HTTP_200_OK)
