from __future__ import annotations

import logging
from typing import List

from django.apps import AppConfig
from django.core.checks import Error, Tags, register

from roster.utils import _get_setting

log = logging.getLogger(__name__)

# =========================
# System checks (validações de settings)
# =========================

@register(Tags.compatibility)
def roster_settings_check(app_configs, **kwargs):
    """Garante que os settings da escala estejam válidos."""
    errors: List[Error] = []

    limit = _get_setting("ROSTER_CONFLICT_PREVIEW_LIMIT", 3)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        errors.append(
            Error(
                f"ROSTER_CONFLICT_PREVIEW_LIMIT deve ser um inteiro >= 1. Valor atual: {limit!r}",
                id="roster.E001",
            )
        )

    note = _get_setting("ROSTER_AUTO_SCHEDULE_NOTE", "auto_schedule")
    if not isinstance(note, str) or not note.strip():
        errors.append(
            Error(
                "ROSTER_AUTO_SCHEDULE_NOTE deve ser uma string não vazia.",
                id="roster.E002",
            )
        )

    if not isinstance(_get_setting("ROSTER_AUDIT_ASYNC", True), bool):
        errors.append(Error("ROSTER_AUDIT_ASYNC deve ser booleano.", id="roster.E003"))

    return errors

# =========================
# AppConfig
# =========================

class RosterConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "roster"
    verbose_name = "Escala de voluntários"

    def ready(self):
        # registra os signals de auditoria (Unavailability, Preacher)
        from roster.domain import signals  # noqa: F401
