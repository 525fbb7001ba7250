from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db.models import Prefetch, QuerySet

from roster.domain.assignments import assigned_volunteer_ids, normalize_assignments
from roster.domain.models import (
    AccessLevel,
    Ministry,
    MinistryMembership,
    Service,
    Unavailability,
    Volunteer,
)
from roster.domain.snapshots import (
    CallerContext,
    MinistryRef,
    ServiceSnapshot,
    UnavailabilityWindow,
    VolunteerProfile,
    display_title,
)
from roster.exceptions import ServiceNotFound

# ==========================================================
# Service Repository
# ==========================================================
class ServiceRepository:
    """Repositório para operações relacionadas a Service."""

    @classmethod
    def base_qs(cls) -> QuerySet[Service]:
        return Service.objects.select_related("event_type")

    @classmethod
    def get(cls, service_id: Any, organization_id: Any = None) -> Optional[Service]:
        """Retorna a escala pelo ID (opcionalmente restrita à organização).

        Args:
            service_id (Any): O ID da escala.
            organization_id (Any, optional): Restringe à organização. Defaults to None.

        Returns:
            Optional[Service]: A escala, ou None se não existir (ou ID malformado).
        """
        qs = cls.base_qs()
        if organization_id is not None:
            qs = qs.filter(organization_id=organization_id)
        try:
            return qs.filter(id=service_id).first()
        except (ValidationError, ValueError):
            return None

    @classmethod
    def get_for_update(cls, service_id: Any, organization_id: Any = None) -> Service:
        """Relê a escala com lock de linha (usar dentro de transaction.atomic).

        Args:
            service_id (Any): O ID da escala.
            organization_id (Any, optional): Restringe à organização. Defaults to None.

        Raises:
            ServiceNotFound: Se a escala não existir.

        Returns:
            Service: A escala travada para read-modify-write.
        """
        qs = Service.objects.select_for_update()
        if organization_id is not None:
            qs = qs.filter(organization_id=organization_id)
        try:
            service = qs.filter(id=service_id).first()
        except (ValidationError, ValueError):
            service = None
        if service is None:
            raise ServiceNotFound(service_id)
        return service

    @classmethod
    def for_organization(
        cls,
        organization_id: Any,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> QuerySet[Service]:
        """Retorna as escalas da organização, opcionalmente num intervalo de datas.

        Args:
            organization_id (Any): A organização.
            start (Optional[date], optional): Data inicial (inclusiva). Defaults to None.
            end (Optional[date], optional): Data final (inclusiva). Defaults to None.

        Returns:
            QuerySet[Service]: As escalas ordenadas por data.
        """
        qs = cls.base_qs().filter(organization_id=organization_id)
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs.order_by("date", "created_at")

    @classmethod
    def for_day(cls, organization_id: Any, d: date) -> QuerySet[Service]:
        return cls.for_organization(organization_id, start=d, end=d)

    @classmethod
    def for_volunteer(cls, volunteer_id: Any, organization_id: Any, start: Optional[date] = None) -> List[Service]:
        """Retorna as escalas em que o voluntário está escalado (qualquer formato de payload).

        Args:
            volunteer_id (Any): O voluntário.
            organization_id (Any): A organização.
            start (Optional[date], optional): Ignora escalas anteriores. Defaults to None.

        Returns:
            List[Service]: As escalas do voluntário, em ordem de data.
        """
        target = str(volunteer_id)
        return [
            s for s in cls.for_organization(organization_id, start=start)
            if target in assigned_volunteer_ids(normalize_assignments(s.assignments))
        ]

# ==========================================================
# Volunteer Repository
# ==========================================================
class VolunteerRepository:
    """Repositório para operações relacionadas a Volunteer."""

    @classmethod
    def for_organization(cls, organization_id: Any) -> QuerySet[Volunteer]:
        """Retorna os voluntários da organização com os vínculos de ministério.

        Args:
            organization_id (Any): A organização.

        Returns:
            QuerySet[Volunteer]: Voluntários ordenados por nome.
        """
        return (
            Volunteer.objects
            .filter(organization_id=organization_id)
            .prefetch_related(Prefetch("memberships", queryset=MinistryMembership.objects.only(
                "volunteer_id", "ministry_id", "is_leader"
            )))
            .order_by("name")
        )

    @classmethod
    def get(cls, volunteer_id: Any, organization_id: Any = None) -> Optional[Volunteer]:
        qs = Volunteer.objects.all()
        if organization_id is not None:
            qs = qs.filter(organization_id=organization_id)
        try:
            return qs.filter(id=volunteer_id).first()
        except (ValidationError, ValueError):
            return None

    @classmethod
    def for_user(cls, user) -> Optional[Volunteer]:
        """Retorna o perfil de voluntário do usuário autenticado, se houver."""
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return Volunteer.objects.filter(user=user).prefetch_related("memberships").first()

    @classmethod
    def leader_ministry_ids(cls, volunteer: Volunteer) -> List[str]:
        return [str(m.ministry_id) for m in volunteer.memberships.all() if m.is_leader]

# ==========================================================
# Unavailability / Ministry Repositories
# ==========================================================
class UnavailabilityRepository:
    """Repositório para operações relacionadas a Unavailability."""

    @classmethod
    def for_organization(cls, organization_id: Any) -> QuerySet[Unavailability]:
        return Unavailability.objects.filter(organization_id=organization_id).order_by("start_date", "end_date")

    @classmethod
    def for_volunteer_on(cls, volunteer_id: Any, d: date) -> QuerySet[Unavailability]:
        """Indisponibilidades do voluntário que cobrem a data.

        Args:
            volunteer_id (Any): O voluntário.
            d (date): A data verificada.

        Returns:
            QuerySet[Unavailability]: As janelas que cobrem a data, da mais antiga para a mais nova.
        """
        return (
            Unavailability.objects
            .filter(volunteer_id=volunteer_id, start_date__lte=d, end_date__gte=d)
            .order_by("start_date", "end_date")
        )

class MinistryRepository:
    """Repositório para operações relacionadas a Ministry."""

    @classmethod
    def for_organization(cls, organization_id: Any) -> QuerySet[Ministry]:
        return Ministry.objects.filter(organization_id=organization_id).order_by("name")

# ==========================================================
# Projeções (snapshots para os algoritmos puros)
# ==========================================================
@dataclass(frozen=True)
class OrganizationSnapshot:
    """Tudo que o motor de sugestões precisa, lido numa única transação."""
    target: ServiceSnapshot
    services: List[ServiceSnapshot]
    volunteers: List[VolunteerProfile]
    unavailability: List[UnavailabilityWindow]
    ministries: List[MinistryRef]


class ProjectionRepository:
    """Converte linhas do ORM em snapshots imutáveis."""

    @classmethod
    def service_snapshot(cls, service: Service) -> ServiceSnapshot:
        event_type_name = service.event_type.name if service.event_type_id and service.event_type else None
        return ServiceSnapshot(
            id=str(service.id),
            date=service.date,
            title=display_title(service.title, event_type_name, service.date),
            assignments=normalize_assignments(service.assignments),
            organization_id=str(service.organization_id),
        )

    @classmethod
    def volunteer_profile(cls, volunteer: Volunteer) -> VolunteerProfile:
        memberships = list(volunteer.memberships.all())
        return VolunteerProfile(
            id=str(volunteer.id),
            name=volunteer.name,
            access_level=volunteer.access_level,
            ministry_ids=frozenset(str(m.ministry_id) for m in memberships),
            leader_ministry_ids=frozenset(str(m.ministry_id) for m in memberships if m.is_leader),
        )

    @classmethod
    def window(cls, u: Unavailability) -> UnavailabilityWindow:
        return UnavailabilityWindow(
            volunteer_id=str(u.volunteer_id),
            start_date=u.start_date,
            end_date=u.end_date,
            reason=u.reason,
            id=str(u.id),
        )

    @classmethod
    def caller_context(cls, volunteer: Volunteer) -> CallerContext:
        """Monta o contexto do chamador a partir do perfil de voluntário.

        Args:
            volunteer (Volunteer): O voluntário autenticado.

        Returns:
            CallerContext: Nível de acesso e ministérios liderados.
        """
        return CallerContext(
            volunteer_id=str(volunteer.id),
            organization_id=str(volunteer.organization_id),
            access_level=volunteer.access_level or AccessLevel.VOLUNTEER,
            leader_ministry_ids=frozenset(VolunteerRepository.leader_ministry_ids(volunteer)),
            can_manage_preaching_schedule=bool(volunteer.can_manage_preaching_schedule),
        )

    @classmethod
    def day_snapshots(cls, organization_id: Any, d: date) -> List[ServiceSnapshot]:
        return [cls.service_snapshot(s) for s in ServiceRepository.for_day(organization_id, d)]

    @classmethod
    def volunteer_profiles(cls, organization_id: Any) -> Dict[str, VolunteerProfile]:
        return {
            str(v.id): cls.volunteer_profile(v)
            for v in VolunteerRepository.for_organization(organization_id)
        }

    @classmethod
    def organization_snapshot(cls, service_id: Any, organization_id: Any) -> OrganizationSnapshot:
        """Lê escalas, voluntários, indisponibilidades e ministérios da organização.

        Args:
            service_id (Any): A escala alvo.
            organization_id (Any): A organização do chamador.

        Raises:
            ServiceNotFound: Se a escala não pertencer à organização.

        Returns:
            OrganizationSnapshot: O snapshot completo.
        """
        service = ServiceRepository.get(service_id, organization_id)
        if service is None:
            raise ServiceNotFound(service_id)
        services = [cls.service_snapshot(s) for s in ServiceRepository.for_organization(organization_id)]
        target = next((s for s in services if s.id == str(service.id)), None) or cls.service_snapshot(service)
        return OrganizationSnapshot(
            target=target,
            services=services,
            volunteers=list(cls.volunteer_profiles(organization_id).values()),
            unavailability=[cls.window(u) for u in UnavailabilityRepository.for_organization(organization_id)],
            ministries=[MinistryRef(id=str(m.id), name=m.name) for m in MinistryRepository.for_organization(organization_id)],
        )

