"""
Pytest configuration and shared fixtures.
"""
import pytest


@pytest.fixture(autouse=True)
def clear_service_cache():
    """Every test starts with an empty reference-data cache."""
    from crm import services

    services.reset_cache()
    yield
    services.reset_cache()


@pytest.fixture
def sample_customer():
    """Customer record as returned by the CRM gateway."""
    return {
        "id": "cust-1",
        "first_name": "John",
        "last_name": "Doe",
        "email": "john@example.com",
        "phone": "919876543210",
        "address": "12 Main St",
        "age": 42,
        "gender": "M",
        "assigned_to": "Dr. Smith",
        "status": "FollowUp",
        "medical_history": [{"Key": "notes", "Value": "penicillin allergy"}],
        "date_of_birth": "1982-05-01",
        "last_visit": "2024-02-01T00:00:00Z",
        "next_visit": "2024-03-10T14:30:00Z",
        "created_at": "2024-01-01T09:00:00.000Z",
        "updated_at": "2024-01-02T09:00:00.000Z",
    }


@pytest.fixture
def sample_appointment():
    """Appointment record as returned by the CRM gateway."""
    return {
        "id": "appt-1",
        "customer_id": "cust-1",
        "appointment_type": "Consultation",
        "assigned_to": "Dr. Smith",
        "assigned_to_id": "doc1234567890abcdef",
        "scheduled_at": "2024-03-10T14:30:00.000Z",
        "duration": 30,
        "status": "confirmed",
        "priority": "high",
        "location": "Room 2",
        "notes": "Annual checkup",
    }


@pytest.fixture
def sample_team_member():
    return {
        "id": "doc1234567890abcdef",
        "name": "Sarah Smith",
        "role": "Doctor",
        "status": "Active",
        "department": "Cardiology",
    }


@pytest.fixture
def auth_headers():
    """Headers for django.test.Client requests."""
    return {"HTTP_AUTHORIZATION": "Bearer test-token"}
