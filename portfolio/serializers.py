"""
API Serializers for the Empire Command Center portfolio views.

The view-models are plain dataclasses built fresh on every request
(see portfolio.composer and portfolio.tables); these serializers only shape
them into JSON for the browser console.

- Table serializers: list pages (columns, rows, empty state)
- Card serializers: card pages (hero strip, details, linked block)
- Violation serializer: diagnostic panel payload for contract failures
"""

import logging

from rest_framework import serializers

from .relations import LinkedCollection

logger = logging.getLogger(__name__)


# =============================================================================
# TABLE SERIALIZERS
# =============================================================================

class ColumnSerializer(serializers.Serializer):
    key = serializers.CharField()
    header = serializers.CharField()
    hint = serializers.CharField(allow_null=True)


class TableRowSerializer(serializers.Serializer):
    cells = serializers.ListField(child=serializers.CharField(allow_blank=True))
    href = serializers.CharField(allow_null=True)


class TableSerializer(serializers.Serializer):
    """
    List page view-model.

    ``state`` is "rows" or "empty". The empty state carries the fixed message
    and no columns, so the console never paints a header-only table.
    """
    state = serializers.CharField()
    columns = ColumnSerializer(many=True)
    rows = TableRowSerializer(many=True)
    count = serializers.SerializerMethodField()
    message = serializers.CharField(allow_null=True)

    def get_count(self, obj):
        return len(obj.rows)


# =============================================================================
# CARD SERIALIZERS
# =============================================================================

class FieldValueSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    value = serializers.CharField(allow_blank=True)


class LinkedReferenceSerializer(serializers.Serializer):
    relation = serializers.CharField()
    kind = serializers.CharField()
    label = serializers.CharField()
    href = serializers.CharField(allow_null=True)


class LinkedCollectionSerializer(serializers.Serializer):
    relation = serializers.CharField()
    kind = serializers.CharField()
    items = LinkedReferenceSerializer(many=True)
    total = serializers.IntegerField()
    truncated = serializers.BooleanField()
    empty_label = serializers.CharField()


def serialize_linked(linked):
    """Serialize one entry of a card's linked block, single or collection."""
    if isinstance(linked, LinkedCollection):
        return dict(LinkedCollectionSerializer(linked).data, many=True)
    return dict(LinkedReferenceSerializer(linked).data, many=False)


class CardSerializer(serializers.Serializer):
    kind = serializers.CharField()
    id = serializers.ReadOnlyField()
    title = serializers.CharField()
    href = serializers.CharField()
    hero = FieldValueSerializer(many=True)
    details = FieldValueSerializer(many=True)
    linked = serializers.SerializerMethodField()

    def get_linked(self, obj):
        return [serialize_linked(linked) for linked in obj.linked]


class ContractViolationSerializer(serializers.Serializer):
    """Diagnostic panel payload: what the backend failed to send."""
    state = serializers.SerializerMethodField()
    path = serializers.CharField()
    message = serializers.CharField()

    def get_state(self, obj):
        return 'error'


class CardResultSerializer(serializers.Serializer):
    state = serializers.CharField()
    kind = serializers.CharField()
    card = CardSerializer(allow_null=True)
    error = serializers.SerializerMethodField()

    def get_error(self, obj):
        if obj.violation is None:
            return None
        return ContractViolationSerializer(obj.violation).data
