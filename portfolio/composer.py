"""
Card composer and list page assembly.

compose_card() is a pure function of (primary record, related records) and
returns an explicit CardResult:

    loading  - no record yet
    loaded   - card view-model (title, hero strip, details block, linked block)
    error    - a ContractViolation raised while reading a required field

List pages have no result type; a contract violation while projecting rows
propagates to the DRF exception handler (see portfolio.exceptions).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .contracts import ContractViolation, require_array, require_field
from .descriptors import (
    COLLECTIONS, COLUMNS, DETAIL_FIELDS, HERO_FIELDS, LINK_LABELS, RELATIONS, ROW_FIELDS,
)
from .formatting import display_or_placeholder, format_value
from .joins import join_records
from .projection import FieldDescriptor, project
from .relations import Linked, card_path, link_label, resolve_relations
from .tables import TableView, render_table, sort_rows

logger = logging.getLogger(__name__)

LOADING = 'loading'
LOADED = 'loaded'
ERROR = 'error'


@dataclass
class FieldValue:
    key: str
    label: str
    value: str


@dataclass
class CardView:
    kind: str
    id: Any
    title: str
    href: str
    hero: List[FieldValue] = field(default_factory=list)
    details: List[FieldValue] = field(default_factory=list)
    linked: List[Linked] = field(default_factory=list)


@dataclass
class CardResult:
    state: str
    kind: str
    card: Optional[CardView] = None
    violation: Optional[ContractViolation] = None

    @property
    def loaded(self) -> bool:
        return self.state == LOADED


def _check_kind(kind: str):
    if kind not in RELATIONS:
        raise ValueError(f"Unknown entity kind: {kind}")


def field_path(kind: str, descriptor: FieldDescriptor) -> str:
    """Logical path reported by a violation, e.g. ``lease.rent_cents``."""
    return f"{kind}.{descriptor.paths[0]}"


def read_field(kind: str, descriptor: FieldDescriptor, projected: Mapping[str, Any]) -> str:
    """Display value of one projected field, contract-checked when required."""
    value = projected.get(descriptor.key)
    if descriptor.required:
        return format_value(require_field(value, field_path(kind, descriptor)), descriptor.hint)
    return display_or_placeholder(value, descriptor.hint)


def resolve_linked(kind: str, record: Optional[Mapping[str, Any]],
                   related: Optional[Mapping[str, Any]] = None) -> List[Linked]:
    """Linked block for ``kind`` using its configured relations and label chains."""
    _check_kind(kind)
    return resolve_relations(RELATIONS[kind], record, related, LINK_LABELS)


def _build_card(kind: str, record: Mapping[str, Any], related: Optional[Mapping[str, Any]]) -> CardView:
    hero_fields = HERO_FIELDS[kind]
    detail_fields = DETAIL_FIELDS[kind]
    projected = project(record, tuple(hero_fields) + tuple(detail_fields))

    entity_id = require_field(record.get('id'), f"{kind}.id")

    return CardView(
        kind=kind,
        id=entity_id,
        title=link_label(kind, record, LINK_LABELS),
        href=card_path(kind, entity_id),
        hero=[FieldValue(d.key, d.label, read_field(kind, d, projected)) for d in hero_fields],
        details=[FieldValue(d.key, d.label, read_field(kind, d, projected)) for d in detail_fields],
        linked=resolve_linked(kind, record, related),
    )


def compose_card(kind: str, record: Optional[Mapping[str, Any]],
                 related: Optional[Mapping[str, Any]] = None) -> CardResult:
    """
    Assemble the card view-model for one entity.

    Args:
        kind: entity kind (owner, property, unit, tenant, lease)
        record: the primary record, or None while it is still being fetched
        related: records fetched for foreign-key and reverse relations,
            keyed by relation name

    Returns:
        CardResult in the loading, loaded or error state
    """
    _check_kind(kind)

    if record is None:
        return CardResult(state=LOADING, kind=kind)

    try:
        card = _build_card(kind, record, related)
    except ContractViolation as violation:
        logger.warning(f"Card {kind} failed contract check at '{violation.path}'")
        return CardResult(state=ERROR, kind=kind, violation=violation)

    return CardResult(state=LOADED, kind=kind, card=card)


# =============================================================================
# LIST PAGES
# =============================================================================

def build_rows(kind: str, records: Any, lookups: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Pre-project backend records into flat table rows for ``kind``.

    ``lookups`` holds the collections the page is joined against, keyed by
    entity kind (see portfolio.joins).

    Raises:
        ContractViolation: records is not a list, or a row misses a required field
    """
    _check_kind(kind)
    records = require_array(records, COLLECTIONS[kind])
    records = join_records(kind, records, lookups)

    rows = []
    for record in records:
        row = project(record, ROW_FIELDS[kind])
        for descriptor in ROW_FIELDS[kind]:
            if descriptor.required:
                require_field(row.get(descriptor.key), field_path(kind, descriptor))
        rows.append(row)
    return rows


def parse_ordering(kind: str, ordering: Optional[str]):
    """
    Split an ``ordering`` query value into (key, descending).

    Unknown keys are ignored and give (None, False).
    """
    if not ordering:
        return None, False

    descending = ordering.startswith('-')
    key = ordering.lstrip('-')
    if key not in {column.key for column in COLUMNS[kind]}:
        logger.debug(f"Ignoring unknown ordering '{ordering}' for {kind}")
        return None, False
    return key, descending


def render_list(kind: str, records: Any, ordering: Optional[str] = None,
                lookups: Optional[Mapping[str, Any]] = None) -> TableView:
    """Table view-model for a list page, rows linking to their cards."""
    rows = build_rows(kind, records, lookups)

    key, descending = parse_ordering(kind, ordering)
    if key:
        rows = sort_rows(rows, key, descending)

    return render_table(
        COLUMNS[kind],
        rows,
        row_href=lambda row: card_path(kind, row['id']),
    )
