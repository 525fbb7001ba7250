from __future__ import annotations

from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from roster.domain.models import (
    AccessLevel,
    EventType,
    Ministry,
    MinistryMembership,
    Organization,
    Service,
    Volunteer,
)
from roster.services.calendar import RECURRENCE_WEEKLY, create_services

DEFAULT_MINISTRIES = ["Louvor", "Mídia", "Recepção", "Infantil"]
DEFAULT_NAMES = [
    "Ana", "Bruno", "Carla", "Daniel", "Elisa",
    "Felipe", "Gabriela", "Hugo", "Isabela", "João",
]

class Command(BaseCommand):
    help = "Seed demo data (organização, ministérios, voluntários e cultos de domingo). Idempotente."

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, default="Igreja Demo", help="Nome da organização (default: Igreja Demo).")
        parser.add_argument(
            "--names",
            type=str,
            help="Lista de nomes separada por vírgula. Ex.: 'Ana,Beto,Caio'. "
                 "Se omitido, usa uma lista padrão.",
        )
        parser.add_argument("--admin-user", type=str, default="admin", help="Username do admin demo (default: admin).")
        parser.add_argument("--admin-email", type=str, default="admin@example.com", help="Email do admin demo.")
        parser.add_argument("--admin-pass", type=str, default="admin", help="Senha do admin demo (default: admin).")
        parser.add_argument("--weeks", type=int, default=8, help="Domingos a criar a partir de hoje (default: 8).")

    @transaction.atomic
    def handle(self, *args, **kwargs):
        org, _ = Organization.objects.get_or_create(name=kwargs["org"])

        admin_user = kwargs["admin_user"]
        user = User.objects.filter(username=admin_user).first()
        if user is None:
            user = User.objects.create_superuser(admin_user, kwargs["admin_email"], kwargs["admin_pass"])
            self.stdout.write(self.style.SUCCESS(f"Created superuser {admin_user}:{kwargs['admin_pass']}"))
        else:
            self.stdout.write(self.style.WARNING(f"Superuser {admin_user} already exists."))

        Volunteer.objects.get_or_create(
            user=user,
            defaults={
                "organization": org,
                "name": admin_user.title(),
                "email": kwargs["admin_email"],
                "access_level": AccessLevel.ADMIN,
                "can_manage_preaching_schedule": True,
            },
        )

        ministries = [
            Ministry.objects.get_or_create(organization=org, name=name)[0]
            for name in DEFAULT_MINISTRIES
        ]

        names_arg = kwargs.get("names")
        names = [n.strip() for n in names_arg.split(",") if n.strip()] if names_arg else DEFAULT_NAMES

        created_count = 0
        for i, name in enumerate(names):
            volunteer, created = Volunteer.objects.get_or_create(organization=org, name=name)
            created_count += int(created)
            ministry = ministries[i % len(ministries)]
            MinistryMembership.objects.get_or_create(
                volunteer=volunteer,
                ministry=ministry,
                # o primeiro de cada ministério lidera
                defaults={"is_leader": i < len(ministries)},
            )

        culto, _ = EventType.objects.get_or_create(organization=org, name="Culto de Domingo")
        services_created = 0
        if not Service.objects.filter(organization=org, event_type=culto).exists():
            today = timezone.localdate()
            first_sunday = today + timedelta(days=(6 - today.weekday()) % 7)
            weeks = max(1, kwargs["weeks"])
            services_created = len(create_services(
                org,
                first_sunday,
                event_type=culto,
                recurrence=RECURRENCE_WEEKLY,
                end=first_sunday + timedelta(weeks=weeks - 1),
            ))

        self.stdout.write(self.style.SUCCESS(
            f"Seed completed. org={org.name} ministries={len(ministries)} "
            f"volunteers: created={created_count}, total={Volunteer.objects.filter(organization=org).count()}; "
            f"services created={services_created}."
        ))
