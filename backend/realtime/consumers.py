from __future__ import annotations

import json
import logging
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from rest_framework.utils.encoders import JSONEncoder

from realtime.fanout import ALL_GROUP, group_name_for, user_group_name

logger = logging.getLogger(__name__)


class DashboardConsumer(AsyncJsonWebsocketConsumer):
    """
    Live dashboard feed.

    Every client receives the "all" channel (telemetry and presence). Passing `?userId=` also
    subscribes the client to its user channel (rule executions for that user's rules), and
    clients may join/leave named groups at runtime.
    """

    @classmethod
    async def encode_json(cls, content):
        """Serialize websocket payloads using DRF's JSONEncoder for date/time support."""
        return json.dumps(content, cls=JSONEncoder)

    async def connect(self):
        self._groups: set[str] = set()
        await self.accept()
        await self._join(ALL_GROUP)

        query = parse_qs((self.scope.get("query_string") or b"").decode("utf-8", errors="replace"))
        user_id = (query.get("userId") or query.get("user_id") or [""])[0].strip()
        self.user_id = user_id or None
        if self.user_id:
            await self._join(user_group_name(self.user_id))
        logger.info("WS connect: dashboard client user_id=%s", self.user_id)

    async def receive_json(self, content, **kwargs):
        """Handle client control messages: ping, join_group, leave_group."""
        if not isinstance(content, dict):
            return
        message_type = content.get("type")
        if message_type == "ping":
            await self.send_json({"type": "pong"})
            return

        if message_type not in {"join_group", "leave_group"}:
            return
        group = str(content.get("group") or "").strip()
        if not group:
            await self.send_json({"type": "error", "message": "group is required."})
            return
        if message_type == "join_group":
            await self._join(group_name_for(group))
            await self.send_json({"type": "group_joined", "group": group})
        else:
            await self._leave(group_name_for(group))
            await self.send_json({"type": "group_left", "group": group})

    async def disconnect(self, code):
        for group in list(getattr(self, "_groups", ())):
            try:
                await self._leave(group)
            except Exception:
                logger.exception("WS disconnect: group_discard failed for %s", group)
        logger.info("WS disconnect: code=%s user_id=%s", code, getattr(self, "user_id", None))

    async def broadcast(self, event):
        """Receive a group broadcast event and forward it to the websocket client."""
        message = event.get("message")
        if message is not None:
            await self.send_json(message)

    async def _join(self, group: str) -> None:
        await self.channel_layer.group_add(group, self.channel_name)
        self._groups.add(group)

    async def _leave(self, group: str) -> None:
        await self.channel_layer.group_discard(group, self.channel_name)
        self._groups.discard(group)
