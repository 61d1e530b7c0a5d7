"""
Entity resolver: turn a primary record's relations into linked references.

For each Relation Descriptor of an entity kind the resolver produces either a
single LinkedReference (display label + optional navigation target) or, for
collection relations, a LinkedCollection capped at LINKED_PREVIEW_LIMIT items.

A missing related record is NOT an error. It is the normal "no related record"
state and renders the fixed "No {kind}" label without a navigation target.
The resolver never raises; malformed related data degrades to that label.

Related records arrive in one of three ways, declared per relation:
- embedded inline on the primary record (``embedded``)
- by foreign key, fetched separately (``foreign_key``), optionally read off the
  record of an earlier relation (``through``)
- by reverse key for collections and filtered lookups (``reverse_key``)

Fetching is the caller's job (see services.portfolio_api); the resolver only
consumes the ``related`` mapping of relation name -> record(s).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .projection import first_defined, resolve_path

logger = logging.getLogger(__name__)

# Collections render at most this many linked references
LINKED_PREVIEW_LIMIT = 5


# =============================================================================
# DESCRIPTORS
# =============================================================================

@dataclass(frozen=True)
class LinkLabel:
    """Fallback chain used to label a record of one entity kind."""
    paths: Tuple[str, ...]
    template: str = '{}'


@dataclass(frozen=True)
class RelationDescriptor:
    name: str
    kind: str
    embedded: Optional[str] = None
    foreign_key: Tuple[str, ...] = ()
    through: Optional[str] = None
    reverse_key: Optional[str] = None
    filters: Tuple[Tuple[str, str], ...] = ()
    many: bool = False

    def __post_init__(self):
        if isinstance(self.foreign_key, str):
            object.__setattr__(self, 'foreign_key', (self.foreign_key,))

    @property
    def fallback_label(self) -> str:
        if self.many:
            return f"No linked {self.name.replace('_', ' ')}"
        return f"No {self.kind}"


# =============================================================================
# RESOLVED VALUES
# =============================================================================

@dataclass
class LinkedReference:
    relation: str
    kind: str
    label: str
    href: Optional[str] = None

    @property
    def navigable(self) -> bool:
        return self.href is not None


@dataclass
class LinkedCollection:
    relation: str
    kind: str
    items: List[LinkedReference] = field(default_factory=list)
    total: int = 0
    empty_label: str = ''

    @property
    def truncated(self) -> bool:
        return self.total > len(self.items)


Linked = Union[LinkedReference, LinkedCollection]


def card_path(kind: str, entity_id: Any) -> str:
    """Navigation target consumed by the console router."""
    return f"/card/{kind}/{entity_id}"


def link_label(kind: str, record: Mapping[str, Any], labels: Mapping[str, LinkLabel]) -> Optional[str]:
    """
    Label a record of ``kind`` through its fallback chain.

    Blank strings count as missing so the chain moves on to the next path.

    Falls back to "{Kind} #{id}" when no label path resolves, and to None when
    the record has no identifier either.
    """
    chain = labels.get(kind)
    if chain is not None:
        for path in chain.paths:
            value = resolve_path(record, path)
            if value is not None and str(value).strip():
                return chain.template.format(value)

    entity_id = record.get('id')
    if entity_id is not None:
        return f"{kind.title()} #{entity_id}"
    return None


def reference_for(relation: RelationDescriptor, record: Any,
                  labels: Mapping[str, LinkLabel]) -> LinkedReference:
    """Build the reference for one related record (or its absence)."""
    if not isinstance(record, Mapping):
        return LinkedReference(relation.name, relation.kind, relation.fallback_label)

    label = link_label(relation.kind, record, labels) or relation.fallback_label
    entity_id = record.get('id')
    href = card_path(relation.kind, entity_id) if entity_id is not None else None
    return LinkedReference(relation.name, relation.kind, label, href)


# =============================================================================
# RESOLUTION
# =============================================================================

def related_record(relation: RelationDescriptor, record: Mapping[str, Any],
                   related: Mapping[str, Any], resolved: Mapping[str, Any]) -> Any:
    """
    Locate the raw related value for ``relation``.

    ``resolved`` holds the raw values already located for earlier relations
    and is what ``through`` relations read their foreign key from.
    """
    if relation.embedded and relation.embedded in record:
        return record.get(relation.embedded)

    if relation.foreign_key:
        source = resolved.get(relation.through) if relation.through else record
        if not isinstance(source, Mapping):
            return None
        if first_defined(source, relation.foreign_key) is None:
            return None

    return related.get(relation.name)


def related_records(relations: Sequence[RelationDescriptor], record: Mapping[str, Any],
                    related: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Raw related value per relation name, in declaration order."""
    related = related or {}
    resolved: Dict[str, Any] = {}
    for relation in relations:
        resolved[relation.name] = related_record(relation, record, related, resolved)
    return resolved


def resolve_relation(relation: RelationDescriptor, value: Any,
                     labels: Mapping[str, LinkLabel]) -> Linked:
    if not relation.many:
        return reference_for(relation, value, labels)

    values = value if isinstance(value, list) else []
    if value is not None and not isinstance(value, list):
        logger.debug(f"Relation '{relation.name}' expected a list, got {type(value).__name__}")

    items = [reference_for(relation, item, labels) for item in values[:LINKED_PREVIEW_LIMIT]]
    return LinkedCollection(
        relation=relation.name,
        kind=relation.kind,
        items=items,
        total=len(values),
        empty_label=relation.fallback_label,
    )


def resolve_relations(relations: Sequence[RelationDescriptor], record: Optional[Mapping[str, Any]],
                      related: Optional[Mapping[str, Any]], labels: Mapping[str, LinkLabel]) -> List[Linked]:
    """
    Produce one linked value per relation descriptor, in declaration order.

    Args:
        relations: the entity kind's relation descriptors
        record: the primary record (None resolves every relation to its fallback)
        related: separately fetched records keyed by relation name
        labels: link label chains per entity kind

    Returns:
        list of LinkedReference / LinkedCollection
    """
    raw = related_records(relations, record or {}, related)
    return [resolve_relation(relation, raw[relation.name], labels) for relation in relations]
