from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from config.domain_exceptions import NotFoundError
from devices.models import Device
from devices.registry import DeviceDescriptor, default_device_registry
from devices.serializers import DeviceRegistrationSerializer, DeviceSerializer


class DeviceListView(APIView):
    def get(self, request):
        queryset = Device.objects.all()
        owner_id = request.query_params.get("userId") or request.query_params.get("owner_id")
        if owner_id:
            queryset = queryset.filter(owner_id=owner_id)
        return Response(DeviceSerializer(queryset, many=True).data)

    def post(self, request):
        serializer = DeviceRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        device, created = default_device_registry.register_or_update(DeviceDescriptor(**serializer.validated_data))
        return Response(
            DeviceSerializer(device).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class DeviceDetailView(APIView):
    def get(self, request, device_id: str):
        device = default_device_registry.get_device(device_id)
        if device is None:
            raise NotFoundError(f"Device '{device_id}' not found.")
        return Response(DeviceSerializer(device).data)
