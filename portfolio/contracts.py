"""
Value contracts for the Empire Command Center portfolio layer.

Backend records are loosely typed and frequently incomplete. Upstream display
code tends to paper over gaps with "—" or 0, which hides backend defects.
The helpers here are called at the point a required value is READ; a missing
value raises ContractViolation instead of being replaced by a placeholder.

Absent and None are treated as the same missing-value signal.
"""

import logging
from typing import Any, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ContractViolation(Exception):
    """
    Raised when a required field or array is missing.

    Carries the logical path of the violated field (e.g. ``"lease.rent_cents"``)
    so the containment boundary can show exactly what the backend failed to send.
    """

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message or f"[CONTRACT] Missing required field: {path}"
        super().__init__(self.message)


def require_field(value: Optional[T], path: str) -> T:
    """
    Return ``value`` unchanged unless it is None.

    Falsy values (0, "", False, empty containers) are legitimate data and pass.

    Raises:
        ContractViolation: if value is None
    """
    if value is None:
        logger.warning(f"Contract violation: missing required field '{path}'")
        raise ContractViolation(path)
    return value


def require_array(value: Any, path: str) -> List[Any]:
    """
    Return ``value`` unchanged if it is a list (an empty list is valid).

    Raises:
        ContractViolation: for None or any non-list value
    """
    if not isinstance(value, list):
        logger.warning(f"Contract violation: expected array at '{path}', got {type(value).__name__}")
        raise ContractViolation(path, f"[CONTRACT] Expected array at: {path}")
    return value
