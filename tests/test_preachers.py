import pytest

from roster.domain.models import Preacher
from roster.exceptions import ServiceValidationError
from roster.services.preachers import normalize_name, upsert_preacher

def test_normalize_name():
    assert normalize_name("  José   da SILVA ") == "jose da silva"
    assert normalize_name("Márcio") == normalize_name("marcio")

@pytest.mark.django_db
def test_upsert_deduplicates_by_normalized_name(org):
    first, created = upsert_preacher(org, "José da Silva", "convidado", church="Batista Central")
    assert created
    again, created = upsert_preacher(org, "jose  DA silva", "convidado", notes="Série de Romanos")
    assert not created
    assert again.pk == first.pk
    assert again.name == "jose DA silva"
    assert again.church is None
    assert again.notes == "Série de Romanos"
    assert Preacher.objects.filter(organization=org).count() == 1

@pytest.mark.django_db
def test_upsert_validates_input(org):
    with pytest.raises(ServiceValidationError):
        upsert_preacher(org, "   ")
    with pytest.raises(ServiceValidationError):
        upsert_preacher(org, "Ana", "visitante")
