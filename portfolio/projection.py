"""
Field projection: map a heterogeneous backend record onto named output fields.

Each output key is declared with one or more candidate input paths. Candidate
paths are evaluated in declared order and the first one that resolves to a
non-None value wins (a fallback chain, not a merge). Keys for which no path
resolves are left out of the output.

A path of the form ``first_name+last_name`` joins the non-blank parts with a
space, and resolves to None when every part is missing or blank.

Projection never enforces presence. Fields declared ``required`` must be passed
through ``portfolio.contracts.require_field`` by the caller after projecting.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

PathSpec = Union[str, Sequence[str]]

JOIN_SEPARATOR = '+'


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Declarative description of one projected field.

    Attributes:
        key: output key in the projected mapping
        paths: candidate dot-separated input paths, evaluated first-match-wins
        label: human readable label for hero strips and details blocks
        required: value must be present; enforced by the contract layer
        hint: display format hint (see portfolio.formatting)
    """
    key: str
    paths: Tuple[str, ...]
    label: str = ''
    required: bool = False
    hint: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.paths, str):
            object.__setattr__(self, 'paths', (self.paths,))
        if not self.label:
            object.__setattr__(self, 'label', self.key.replace('_', ' ').title())


def resolve_path(record: Optional[Mapping[str, Any]], path: str) -> Any:
    """
    Walk a dot-separated path through nested mappings.

    A ``+``-joined path is resolved part by part; see joined_value().

    A missing intermediate, or an intermediate that is not a mapping, yields
    None for the whole path rather than an error.
    """
    if JOIN_SEPARATOR in path:
        return joined_value(record, path.split(JOIN_SEPARATOR))

    current: Any = record
    for segment in path.split('.'):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def joined_value(record: Optional[Mapping[str, Any]], paths: Sequence[str]) -> Optional[str]:
    """Space-join the non-blank values of ``paths``, e.g. a first and last name."""
    parts = [str(value).strip() for value in (resolve_path(record, path) for path in paths) if value is not None]
    text = ' '.join(part for part in parts if part)
    return text or None


def first_defined(record: Optional[Mapping[str, Any]], paths: PathSpec) -> Any:
    """Return the value of the first path that resolves to something other than None."""
    if isinstance(paths, str):
        paths = (paths,)
    for path in paths:
        value = resolve_path(record, path)
        if value is not None:
            return value
    return None


def pick(record: Optional[Mapping[str, Any]], mapping: Mapping[str, PathSpec]) -> Dict[str, Any]:
    """
    Project ``record`` through ``mapping`` (output key -> path or paths).

    Returns:
        dict containing only the keys that resolved to a non-None value.
        A None record projects to an empty dict.
    """
    if not record:
        return {}

    out: Dict[str, Any] = {}
    for out_key, paths in mapping.items():
        value = first_defined(record, paths)
        if value is not None:
            out[out_key] = value
    return out


def project(record: Optional[Mapping[str, Any]], descriptors: Iterable[FieldDescriptor]) -> Dict[str, Any]:
    """Descriptor-driven form of ``pick``."""
    return pick(record, {descriptor.key: descriptor.paths for descriptor in descriptors})
