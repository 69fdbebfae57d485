import pytest

from halo.domain.scheduling import service as scheduling
from halo.schemas import Appointment, AppointmentStatus, Client, UserDocument

from .conftest import sample_document


@pytest.fixture
def document():
    return UserDocument.model_validate(sample_document())


def test_complete_one_off_appointment(document):
    change = scheduling.set_appointment_status(document, "a1", "COMPLETED")

    assert change.completed_now is True
    assert change.previous_status == "CONFIRMED"
    assert scheduling.get_appointment(document, "a1").status == "COMPLETED"
    assert scheduling.get_client(document, "c1").lastVisit == "2026-03-02"


def test_completing_twice_is_not_a_new_transition(document):
    scheduling.set_appointment_status(document, "a1", AppointmentStatus.COMPLETED)
    change = scheduling.set_appointment_status(document, "a1", AppointmentStatus.COMPLETED)

    assert change.completed_now is False


def test_other_transitions_do_not_complete(document):
    change = scheduling.set_appointment_status(document, "a2", "CANCELLED")

    assert change.completed_now is False
    assert scheduling.get_appointment(document, "a2").status == "CANCELLED"


def test_complete_recurring_appointment_creates_instance(document):
    change = scheduling.set_appointment_status(document, "a3", "COMPLETED")

    series = scheduling.get_appointment(document, "a3")
    instance = change.appointment
    assert change.completed_now is True
    assert instance.id.endswith("_completed")
    assert instance.seriesId == "a3"
    assert instance.date == "2026-03-02"
    assert instance.status == "COMPLETED"
    assert instance.recurrence is None
    assert series.status == "CONFIRMED"
    assert series.recurrence is not None
    assert len(document.appointments) == 4


def test_each_occurrence_is_completed_separately(document):
    week1 = scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-02")
    week2 = scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-09")

    assert week1.appointment.id != week2.appointment.id
    instances = sorted((a.date, a.status) for a in document.appointments if a.seriesId == "a3")
    assert instances == [("2026-03-02", "COMPLETED"), ("2026-03-09", "COMPLETED")]
    assert scheduling.get_client(document, "c1").lastVisit == "2026-03-09"
    assert scheduling.business_stats(document)["grossRevenue"] == 80


def test_completing_an_occurrence_twice_is_not_a_new_transition(document):
    first = scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-09")
    again = scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-09")

    assert first.completed_now is True
    assert again.completed_now is False
    assert again.appointment.id == first.appointment.id
    assert len([a for a in document.appointments if a.seriesId == "a3"]) == 1


def test_occurrence_must_fall_on_the_series(document):
    with pytest.raises(scheduling.InvalidOccurrence):
        scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-10")
    with pytest.raises(scheduling.InvalidOccurrence):
        scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-02-23")


def test_status_errors(document):
    with pytest.raises(scheduling.AppointmentNotFound):
        scheduling.set_appointment_status(document, "missing", "COMPLETED")
    with pytest.raises(ValueError):
        scheduling.set_appointment_status(document, "a1", "DONE")


def test_find_service_partial_match_and_fallback(document):
    profile = document.businessProfile

    assert scheduling.find_service(profile, "color").id == "svc2"
    assert scheduling.find_service(profile, "massage").id == "svc1"
    assert scheduling.find_service(profile, None).id == "svc1"
    assert scheduling.find_service(None, "haircut") is None


def test_book_appointment_links_existing_client(document):
    appointment, service = scheduling.book_appointment(document, "alice smith", "2026-03-05", "11:00", "hair")

    assert service.name == "Haircut"
    assert appointment.clientId == "c1"
    assert appointment.clientName == "Alice Smith"
    assert appointment.status == "CONFIRMED"
    assert appointment in document.appointments


def test_book_appointment_without_services():
    with pytest.raises(scheduling.NoServicesConfigured, match="No services configured"):
        scheduling.book_appointment(UserDocument(), "Carol", "2026-03-05", "11:00")


def test_public_booking_reuses_client_by_email(document):
    appointment = Appointment(id="p1", serviceId="svc1", date="2026-03-06", time="12:00")
    newcomer = Client(id="new", name="Alice S.", email="ALICE@example.com")

    scheduling.record_public_booking(document, appointment, newcomer)

    assert appointment.clientId == "c1"
    assert appointment.clientName == "Alice Smith"
    assert len(document.clients) == 2


def test_public_booking_adds_new_client(document):
    appointment = Appointment(id="p2", serviceId="svc1", date="2026-03-06", time="12:00")
    newcomer = Client(id="new", name="Dana", email="dana@example.com")

    scheduling.record_public_booking(document, appointment, newcomer)

    assert appointment.clientId == "new"
    assert document.clients[-1].name == "Dana"


def test_occurs_on_weekly_and_monthly():
    weekly = Appointment(
        id="w", date="2026-03-02", time="10:00", recurrence={"frequency": "WEEKLY", "interval": 2, "endDate": "2026-04-30"}
    )
    assert scheduling.occurs_on(weekly, "2026-03-02")
    assert scheduling.occurs_on(weekly, "2026-03-16")
    assert not scheduling.occurs_on(weekly, "2026-03-09")
    assert not scheduling.occurs_on(weekly, "2026-02-16")
    assert not scheduling.occurs_on(weekly, "2026-05-11")

    monthly = Appointment(id="m", date="2026-01-31", time="10:00", recurrence={"frequency": "MONTHLY"})
    assert scheduling.occurs_on(monthly, "2026-03-31")
    assert not scheduling.occurs_on(monthly, "2026-03-30")


def test_schedule_for_day(document):
    scheduling.set_appointment_status(document, "a2", "CANCELLED")

    assert [a.id for a in scheduling.schedule_for(document, "2026-03-02")] == ["a1", "a3"]
    assert [a.id for a in scheduling.schedule_for(document, "2026-03-09")] == ["a3"]


def test_completed_instance_replaces_series_occurrence(document):
    scheduling.set_appointment_status(document, "a3", "COMPLETED", "2026-03-09")

    first_week = [a.id for a in scheduling.schedule_for(document, "2026-03-02")]
    second_week = scheduling.schedule_for(document, "2026-03-09")
    assert "a3" in first_week
    assert [a.seriesId for a in second_week] == ["a3"]
    assert second_week[0].status == "COMPLETED"
    assert [a.id for a in scheduling.schedule_for(document, "2026-03-16")] == ["a3"]


def test_search_clients(document):
    assert [c.id for c in scheduling.search_clients(document, "ALICE")] == ["c1"]
    assert len(scheduling.search_clients(document)) == 2


def test_business_stats(document):
    scheduling.set_appointment_status(document, "a1", "COMPLETED")
    scheduling.set_appointment_status(document, "a2", "COMPLETED")

    stats = scheduling.business_stats(document)
    assert stats["grossRevenue"] == 160
    assert stats["appointmentsCount"] == 3
    assert stats["clientCount"] == 2
    assert stats["monthlyGoal"] == 400
    assert stats["goalProgress"] == "40.0%"


def test_goal_progress_is_capped(document):
    document.businessProfile.monthlyRevenueGoal = 50
    scheduling.set_appointment_status(document, "a2", "COMPLETED")

    assert scheduling.business_stats(document)["goalProgress"] == "100.0%"
