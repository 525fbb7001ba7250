from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from roster.domain.models import AccessLevel, Volunteer
from roster.domain.repositories import MinistryRepository, ProjectionRepository, ServiceRepository
from roster.exceptions import RosterError
from roster.services.mutations import AssignmentService
from roster.services.suggestion import SlotRequest, build_engine, suggest_for_service

class Command(BaseCommand):
    help = "Sugere voluntários para uma escala (mostra o ranking; --commit aplica as sugestões)."

    def add_arguments(self, parser):
        parser.add_argument("service_id", type=str, help="ID da escala.")
        parser.add_argument(
            "--slots",
            action="append",
            default=[],
            metavar="MINISTERIO=N",
            help="Vagas por ministério (nome ou ID). Repetível. Ex.: --slots Louvor=2 --slots Mídia=1",
        )
        parser.add_argument(
            "--as",
            dest="as_volunteer",
            type=str,
            help="Nome do voluntário que executa (default: primeiro admin da organização).",
        )
        parser.add_argument("--top", type=int, default=5, help="Candidatos exibidos por ministério (default: 5).")
        parser.add_argument("--commit", action="store_true", help="Aplica as sugestões na escala.")

    def _caller(self, organization_id, name):
        qs = Volunteer.objects.filter(organization_id=organization_id)
        volunteer = qs.filter(name=name).first() if name else qs.filter(access_level=AccessLevel.ADMIN).first()
        if volunteer is None:
            raise CommandError("Nenhum voluntário encontrado para executar a sugestão.")
        return ProjectionRepository.caller_context(volunteer)

    def _parse_slots(self, raw_slots, organization_id):
        by_name = {m.name.casefold(): m for m in MinistryRepository.for_organization(organization_id)}
        by_id = {str(m.id): m for m in by_name.values()}
        requests = []
        for raw in raw_slots:
            key, sep, count = raw.rpartition("=")
            if not sep:
                raise CommandError(f"Formato inválido em --slots: {raw!r} (use MINISTERIO=N).")
            ministry = by_id.get(key.strip()) or by_name.get(key.strip().casefold())
            if ministry is None:
                raise CommandError(f"Ministério não encontrado: {key!r}.")
            try:
                slots = int(count)
            except ValueError:
                raise CommandError(f"Quantidade inválida em --slots: {raw!r}.") from None
            requests.append(SlotRequest(ministry_id=str(ministry.id), slots=slots))
        return requests

    def handle(self, *args, **opts):
        service = ServiceRepository.get(opts["service_id"])
        if service is None:
            raise CommandError(f"Escala {opts['service_id']} não encontrada.")
        caller = self._caller(service.organization_id, opts.get("as_volunteer"))
        requests = self._parse_slots(opts["slots"], service.organization_id)

        engine = build_engine(str(service.id), caller.organization_id)
        self.stdout.write(f"Escala: {engine.target.title} ({service.date:%d/%m/%Y})")
        for req in requests:
            self.stdout.write(self.style.MIGRATE_HEADING(f"[{engine.ministries[req.ministry_id].name}] ranking"))
            for row in engine.preview(req.ministry_id, limit=opts["top"]):
                flag = f" (bloqueado: {row['reason']})" if row["blocked"] else ""
                self.stdout.write(f"  {row['score']:>6} {row['name']}{flag}")

        try:
            suggestions = suggest_for_service(str(service.id), requests, caller)
        except RosterError as exc:
            raise CommandError(str(exc)) from exc

        for s in suggestions:
            self.stdout.write(
                f"[suggest] {s.ministry_name}: {len(s.suggested_volunteer_ids)}/{s.requested_slots} "
                f"(faltando {s.missing_slots})"
            )

        if not opts.get("commit"):
            self.stdout.write("Dry-run concluído. Use --commit para aplicar as sugestões.")
            return

        _, added = AssignmentService.apply_suggestions(service.id, suggestions, caller=caller)
        self.stdout.write(self.style.SUCCESS(f"[apply] {len(added)} voluntário(s) adicionados à escala."))
