from __future__ import annotations

from datetime import date
from typing import Any, Optional

from django.conf import settings
from django.utils.dateparse import parse_date

# =========================
# Helpers
# =========================

def _get_setting(name: str, default: Any = None) -> Any:
    """Obtém uma configuração do Django settings com um valor padrão."""
    return getattr(settings, name, default)

def _parse_iso_date(value: Any) -> Optional[date]:
    """Converte 'YYYY-MM-DD' (ou date) em date; None se inválido."""
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return parse_date(str(value).strip())
    except ValueError:
        return None
