from datetime import date, datetime, timezone
import pytest

from app.core.exceptions import InputValidationError, NotFoundError, PermissionDeniedError
from app.schemas.appointment import AppointmentCreate, AppointmentUpdate, ConsultationRequest
from app.schemas.user import User
from app.services.scheduling import (
    appointment_window,
    book_consultation,
    cancel_appointment,
    schedule_appointment,
    update_appointment,
)
from tests.conftest import ADMIN_ID, LAWYER_ID, OTHER_LAWYER_ID, SECRETARY_ID

ADMIN = User(id=ADMIN_ID, firstName="Ada", lastName="Admin", role="admin")
LAWYER = User(id=LAWYER_ID, firstName="Lou", lastName="Lawyer", role="lawyer")
OTHER_LAWYER = User(id=OTHER_LAWYER_ID, firstName="Lee", lastName="Counsel", role="lawyer")
SECRETARY = User(id=SECRETARY_ID, firstName="Sam", lastName="Clerk", role="secretary")


def appointment_form(**overrides) -> AppointmentCreate:
    data = {
        "title": "Case review",
        "clientId": "C1",
        "userId": LAWYER_ID,
        "appointmentDate": date(2024, 6, 3),
        "startTime": "09:00",
        "endTime": "10:00",
    }
    data.update(overrides)
    return AppointmentCreate(**data)


class TestAppointmentWindow:
    def test_window_on_the_given_day(self):
        start, end = appointment_window(date(2024, 6, 3), "09:00", "10:30")
        assert start == datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 6, 3, 10, 30, tzinfo=timezone.utc)

    def test_end_before_start(self):
        with pytest.raises(InputValidationError) as exc_info:
            appointment_window(date(2024, 6, 3), "09:00", "08:00")
        assert exc_info.value.field == "endTime"


class TestScheduleAppointment:
    async def test_end_before_start_writes_nothing(self, seeded_store):
        seeded_store.write_count = 0
        with pytest.raises(InputValidationError) as exc_info:
            await schedule_appointment(seeded_store, appointment_form(endTime="08:00"), actor=SECRETARY)
        assert exc_info.value.field == "endTime"
        assert seeded_store.write_count == 0

    def test_short_title_rejected_by_form(self):
        with pytest.raises(ValueError):
            appointment_form(title="ab")

    async def test_notifies_assignee(self, seeded_store):
        appointment_id = await schedule_appointment(seeded_store, appointment_form(), actor=SECRETARY)

        stored = (await seeded_store.get_document(f"appointments/{appointment_id}")).data
        assert stored["startTime"] == datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)
        assert stored["createdAt"] is not None
        notifications = await seeded_store.get_collection(f"users/{LAWYER_ID}/notifications")
        assert len(notifications) == 1
        assert "Case review" in notifications[0].data["message"]

    async def test_no_notification_for_self(self, seeded_store):
        await schedule_appointment(seeded_store, appointment_form(userId=ADMIN_ID), actor=ADMIN)
        assert await seeded_store.get_collection(f"users/{ADMIN_ID}/notifications") == []


class TestUpdateAppointment:
    async def test_owner_can_reschedule(self, seeded_store):
        appointment_id = await schedule_appointment(seeded_store, appointment_form(), actor=SECRETARY)
        updated = await update_appointment(
            seeded_store, appointment_id, AppointmentUpdate(startTime="11:00", endTime="12:00"), actor=LAWYER
        )
        assert updated["startTime"] == datetime(2024, 6, 3, 11, 0, tzinfo=timezone.utc)
        assert updated["title"] == "Case review"

    async def test_other_lawyer_is_denied(self, seeded_store):
        appointment_id = await schedule_appointment(seeded_store, appointment_form(), actor=SECRETARY)
        with pytest.raises(PermissionDeniedError):
            await update_appointment(
                seeded_store, appointment_id, AppointmentUpdate(title="Hijacked"), actor=OTHER_LAWYER
            )

    async def test_reschedule_keeps_window_valid(self, seeded_store):
        appointment_id = await schedule_appointment(seeded_store, appointment_form(), actor=SECRETARY)
        with pytest.raises(InputValidationError):
            await update_appointment(
                seeded_store, appointment_id, AppointmentUpdate(startTime="11:00"), actor=ADMIN
            )

    async def test_only_admin_cancels(self, seeded_store):
        appointment_id = await schedule_appointment(seeded_store, appointment_form(), actor=SECRETARY)
        with pytest.raises(PermissionDeniedError):
            await cancel_appointment(seeded_store, appointment_id, actor=LAWYER)
        await cancel_appointment(seeded_store, appointment_id, actor=ADMIN)
        assert not (await seeded_store.get_document(f"appointments/{appointment_id}")).exists


class TestBookConsultation:
    request = ConsultationRequest(
        firstName="Jane", lastName="Roe", email="jane@example.com", phone="555-0100", message="Need advice"
    )

    async def test_creates_client_and_hour_long_appointment(self, seeded_store):
        now = datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc)
        appointment_id = await book_consultation(seeded_store, self.request, now=now)

        appointment = (await seeded_store.get_document(f"appointments/{appointment_id}")).data
        assert appointment["userId"] == ADMIN_ID
        assert appointment["startTime"] == now
        assert (appointment["endTime"] - appointment["startTime"]).total_seconds() == 3600
        clients = await seeded_store.get_collection("clients")
        assert [c.data["email"] for c in clients] == ["jane@example.com"]
        activities = await seeded_store.get_collection("activities")
        assert activities[0].data["actorName"] == "Website Visitor"

    async def test_reuses_client_by_email(self, seeded_store):
        await book_consultation(seeded_store, self.request)
        await book_consultation(seeded_store, self.request)
        assert len(await seeded_store.get_collection("clients")) == 1
        assert len(await seeded_store.get_collection("appointments")) == 2

    async def test_no_advocate_available(self, store):
        with pytest.raises(NotFoundError):
            await book_consultation(store, self.request)
