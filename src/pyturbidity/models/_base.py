"""Base model for records decoded from the realtime database.

Every record inherits from :class:`TurbidityBaseModel` which provides:

* Per-field kind matching declared in ``_FIELD_KINDS``: a value of the
  wrong primitive kind is dropped so the field default is used.
* Per-field remote key aliases declared in ``_KEY_ALIASES`` (the field
  name itself is always accepted as well).
* A ``raw`` dict that captures the original document.

Records are frozen and total: any mapping, however partial or wrongly
typed, validates into a fully-populated instance.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator

from pyturbidity.ingestion.normalize import FieldKind, match_kind, recency_key

#: Validation-context flag marking input that came straight from the store.
#: Such a document is always kept whole as ``raw``, even when it has a
#: ``raw`` key of its own.
STORE_DOCUMENT_CONTEXT = "store_document"


def millis_to_datetime(value: Any) -> datetime | None:
    """Convert an epoch-millisecond timestamp (int or digit string) to UTC.

    Returns ``None`` for unparsable, non-positive or out-of-range values.
    """
    millis = recency_key(value)
    if millis <= 0:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


class TurbidityBaseModel(BaseModel):
    """Base for records decoded from store documents."""

    _FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {}
    """``{"field_name": kind}`` for every decoded field."""

    _KEY_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {}
    """Remote keys tried, in order, before the field name itself."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original document."""

    @classmethod
    def _candidate_keys(cls, field_name: str, context: Mapping[str, Any]) -> tuple[str, ...]:
        return (*cls._KEY_ALIASES.get(field_name, ()), field_name)

    @model_validator(mode="before")
    @classmethod
    def _match_kinds(cls, values: Any, info: ValidationInfo) -> Any:
        """Keep kind-matching values, drop the rest, and stash the raw document."""
        if not isinstance(values, Mapping):
            return {"raw": {}}
        context: Mapping[str, Any] = info.context if isinstance(info.context, Mapping) else {}

        cleaned: dict[str, Any] = {}
        for field_name, kind in cls._FIELD_KINDS.items():
            for key in cls._candidate_keys(field_name, context):
                if key not in values:
                    continue
                matched = match_kind(values[key], kind)
                if matched is not None:
                    cleaned[field_name] = matched
                # The first present key decides, even when its value is rejected.
                break

        raw = values.get("raw")
        explicit_raw = not context.get(STORE_DOCUMENT_CONTEXT) and isinstance(raw, Mapping)
        cleaned["raw"] = dict(raw) if explicit_raw else dict(values)
        return cleaned
