import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.urls import path

from care.realtime.consumers import HospitalUpdatesConsumer, _may_join
from care.services.notifications import hospital_group

pytestmark = pytest.mark.django_db

application = URLRouter([
    path("ws/updates/<int:hospital_id>/", HospitalUpdatesConsumer.as_asgi()),
])


def test_may_join_rules(hospital, other_hospital, staff_user, doctor, admin_user):
    assert _may_join(staff_user, hospital.id)
    assert not _may_join(staff_user, other_hospital.id)
    assert _may_join(doctor.user, hospital.id)
    assert _may_join(admin_user, other_hospital.id)


def test_anonymous_socket_is_closed(hospital):
    async def run():
        communicator = WebsocketCommunicator(application, f"/ws/updates/{hospital.id}/")
        connected, code = await communicator.connect()
        return connected, code

    connected, code = async_to_sync(run)()
    assert connected is False
    assert code == 4003


def test_staff_socket_receives_appointment_events(hospital, staff_user):
    async def run():
        communicator = WebsocketCommunicator(application, f"/ws/updates/{hospital.id}/")
        communicator.scope["user"] = staff_user
        connected, _ = await communicator.connect()
        welcome = await communicator.receive_json_from()
        await get_channel_layer().group_send(hospital_group(hospital.id), {
            "type": "appointment.changed", "event": "status:confirmed", "appointmentId": 7,
        })
        event = await communicator.receive_json_from()
        await communicator.disconnect()
        return connected, welcome, event

    connected, welcome, event = async_to_sync(run)()
    assert connected is True
    assert welcome == {"type": "welcome", "hospitalId": hospital.id}
    assert event["event"] == "status:confirmed"
    assert event["appointmentId"] == 7
