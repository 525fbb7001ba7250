from datetime import date

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from roster.domain.assignments import empty_assignments
from roster.domain.models import (
    AccessLevel,
    EventType,
    Ministry,
    MinistryMembership,
    Organization,
    Service,
    Volunteer,
)

SUNDAY = date(2025, 10, 5)

@pytest.fixture
def org():
    return Organization.objects.create(name="Igreja Central")

@pytest.fixture
def louvor(org):
    return Ministry.objects.create(organization=org, name="Louvor")

@pytest.fixture
def midia(org):
    return Ministry.objects.create(organization=org, name="Mídia")

@pytest.fixture
def culto(org):
    return EventType.objects.create(organization=org, name="Culto de Domingo")

@pytest.fixture
def make_volunteer(org):
    def _make(name, *ministries, leader_of=(), access_level=AccessLevel.VOLUNTEER, username=None, **extra):
        user = User.objects.create_user(username, f"{username}@example.com", "pw") if username else None
        v = Volunteer.objects.create(organization=org, name=name, access_level=access_level, user=user, **extra)
        for m in ministries:
            MinistryMembership.objects.create(volunteer=v, ministry=m, is_leader=m in leader_of)
        return v
    return _make

@pytest.fixture
def make_service(org):
    def _make(d=SUNDAY, title="Culto da manhã", assignments=None, **extra):
        return Service.objects.create(
            organization=org,
            date=d,
            title=title,
            assignments=empty_assignments() if assignments is None else assignments,
            **extra,
        )
    return _make

@pytest.fixture
def admin(make_volunteer):
    return make_volunteer("Admin", access_level=AccessLevel.ADMIN, username="admin",
                          can_manage_preaching_schedule=True)

@pytest.fixture
def api_client():
    return APIClient()
