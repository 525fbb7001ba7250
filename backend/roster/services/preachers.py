from __future__ import annotations

import logging
import re
import unicodedata
from typing import Optional, Tuple

from django.db import transaction

from roster.domain.models import Organization, Preacher, PreacherType
from roster.exceptions import ServiceValidationError

log = logging.getLogger(__name__)

_SPACES = re.compile(r"\s+")

def normalize_name(name: str) -> str:
    """Chave de deduplicação: sem acentos, casefold e espaços colapsados.

    >>> normalize_name("  José   da SILVA ")
    'jose da silva'
    """
    decomposed = unicodedata.normalize("NFKD", name or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _SPACES.sub(" ", stripped).strip().casefold()

@transaction.atomic
def upsert_preacher(
    organization: Organization,
    name: str,
    type: str = PreacherType.INTERNO,
    church: Optional[str] = None,
    notes: Optional[str] = None,
) -> Tuple[Preacher, bool]:
    """Cria o pregador ou atualiza o existente com o mesmo nome normalizado.

    Args:
        organization (Organization): A organização.
        name (str): Nome como digitado.
        type (str, optional): "interno" ou "convidado". Defaults to "interno".
        church (Optional[str], optional): Igreja de origem (convidados). Defaults to None.
        notes (Optional[str], optional): Observações. Defaults to None.

    Raises:
        ServiceValidationError: Nome vazio ou tipo inválido.

    Returns:
        Tuple[Preacher, bool]: (pregador, criado?)
    """
    display = _SPACES.sub(" ", name or "").strip()
    if not display:
        raise ServiceValidationError("Informe o nome do pregador.")
    if type not in PreacherType.values:
        raise ServiceValidationError(f"Tipo de pregador inválido: {type!r}.")

    preacher, created = Preacher.objects.update_or_create(
        organization=organization,
        name_normalized=normalize_name(display),
        defaults={
            "name": display,
            "type": type,
            "church": (church or "").strip() or None,
            "notes": (notes or "").strip() or None,
        },
    )
    log.info("upsert_preacher: org=%s preacher=%s created=%s", organization.id, preacher.id, created)
    return preacher, created
