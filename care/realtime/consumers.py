import json

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from care.services.notifications import hospital_group


def _may_join(user, hospital_id: int) -> bool:
    if not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "role", None) == "admin":
        return True
    if getattr(user, "role", None) in ("staff", "doctor"):
        return user.hospital_id == hospital_id
    return False


class HospitalUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``appointment.changed`` events for one hospital to console clients."""

    async def connect(self):
        try:
            self.hospital_id = int(self.scope["url_route"]["kwargs"]["hospital_id"])
        except (KeyError, TypeError, ValueError):
            await self.close(code=4001)
            return
        user = self.scope.get("user") or AnonymousUser()
        if not await sync_to_async(_may_join)(user, self.hospital_id):
            await self.close(code=4003)
            return
        self.group = hospital_group(self.hospital_id)
        await self.channel_layer.group_add(self.group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "hospitalId": self.hospital_id}))

    async def disconnect(self, close_code):
        group = getattr(self, "group", None)
        if group:
            await self.channel_layer.group_discard(group, self.channel_name)

    async def appointment_changed(self, event):
        # event: {"type": "appointment.changed", "event": str, "appointmentId": int, ...}
        await self.send(json.dumps(event))
