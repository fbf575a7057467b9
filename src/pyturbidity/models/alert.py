"""Alert model."""

from __future__ import annotations

from typing import ClassVar

from pyturbidity.ingestion.normalize import FieldKind
from pyturbidity.models._base import TurbidityBaseModel


class Alert(TurbidityBaseModel):
    """A threshold alert, e.g. ``kind="high_turbidity"``.

    An alert with an empty ``kind`` is treated as absent.
    """

    _FIELD_KINDS: ClassVar[dict[str, FieldKind]] = {
        "kind": FieldKind.STRING,
        "value": FieldKind.FLOAT,
        "message": FieldKind.STRING,
    }
    _KEY_ALIASES: ClassVar[dict[str, tuple[str, ...]]] = {
        "kind": ("type",),
    }

    kind: str = ""
    value: float = 0.0
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.kind)
