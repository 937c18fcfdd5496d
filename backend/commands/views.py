from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from commands.models import DeviceCommand
from commands.serializers import CommandReportSerializer, DeviceCommandSerializer, IssueCommandSerializer
from commands.use_cases import CommandNotFound, issue_command, report_command_result


class CommandListView(APIView):
    def get(self, request):
        queryset = DeviceCommand.objects.all()
        device_id = request.query_params.get("deviceId") or request.query_params.get("device_id")
        if device_id:
            queryset = queryset.filter(device_id=device_id)
        user_id = request.query_params.get("userId") or request.query_params.get("user_id")
        if user_id:
            queryset = queryset.filter(user_id=user_id)
        return Response(DeviceCommandSerializer(queryset[:200], many=True).data)

    def post(self, request):
        """Issue a user-initiated command; it shares the automation command lifecycle."""
        serializer = IssueCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = issue_command(**serializer.validated_data)
        return Response(DeviceCommandSerializer(command).data, status=status.HTTP_201_CREATED)


class CommandDetailView(APIView):
    def get(self, request, command_id):
        command = DeviceCommand.objects.filter(pk=command_id).first()
        if command is None:
            raise CommandNotFound(f"Command '{command_id}' not found.")
        return Response(DeviceCommandSerializer(command).data)


class CommandReportView(APIView):
    def post(self, request, command_id):
        """Completion/failure report from the device transport (forward-only, first terminal wins)."""
        serializer = CommandReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command, applied = report_command_result(command_id, **serializer.validated_data)
        return Response({"applied": applied, "command": DeviceCommandSerializer(command).data})
