"""Client configuration for pyturbidity."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pyturbidity._constants import (
    DEFAULT_ALERT_THRESHOLD,
    DEFAULT_METRIC,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SOURCE_ID,
    DEFAULT_UNIT,
    HISTORY_ENTRY_SOURCE_ID,
)
from pyturbidity.exceptions import TurbidityConfigError


class SchemaVariant(StrEnum):
    """Document layout used by a deployment.

    ``MEASUREMENT`` is the turbidity monitor layout (float readings with
    unit and device id, device status, alerts).  ``HISTORY_ENTRY`` is the
    simpler layout with an integer current value and a push-keyed history.
    """

    MEASUREMENT = "measurement"
    HISTORY_ENTRY = "history_entry"


@dataclasses.dataclass(frozen=True)
class SyncPaths:
    """Remote paths watched and written by the controller.

    ``device_status`` and ``alerts`` are optional; when ``None`` the
    controller neither subscribes to nor writes them.
    """

    latest: str = "latest"
    history: str = "readings"
    device_status: str | None = "device_status"
    alerts: str | None = "alerts"

    @classmethod
    def for_schema(cls, schema: SchemaVariant) -> SyncPaths:
        """Return the conventional paths for *schema*."""
        if schema == SchemaVariant.HISTORY_ENTRY:
            return cls(latest="test/data", history="test/history", device_status=None, alerts=None)
        return cls()

    def watched(self) -> tuple[str, ...]:
        """All configured paths, in subscription order."""
        candidates = (self.latest, self.history, self.device_status, self.alerts)
        return tuple(path for path in candidates if path)


@dataclasses.dataclass(frozen=True)
class TurbidityConfig:
    """Client configuration.

    Parameters
    ----------
    database_url : str
        Realtime database root URL
        (e.g. ``"https://my-project-default-rtdb.firebaseio.com"``).
    auth_token : str or None
        ID token or database secret appended as ``?auth=``.  Obtaining it
        (anonymous sign-in, service account) is up to the caller.
    schema : SchemaVariant
        Document layout of the deployment.
    metric : str
        Name of the measured quantity.  Used as the value key of the
        ``latest`` and history documents and in alert kinds
        (``high_<metric>``).
    unit : str
        Unit written with every history entry.
    alert_threshold : float
        Submitted values strictly above this raise an alert.
    source_id : str or None
        Identifier written as the source of submitted readings.  ``None``
        selects the schema default (``Android_App`` or ``Android App``).
    request_timeout : float
        Total timeout in seconds for a single write request.
    paths : SyncPaths or None
        Remote paths.  ``None`` selects :meth:`SyncPaths.for_schema`.
    """

    database_url: str
    auth_token: str | None = None
    schema: SchemaVariant = SchemaVariant.MEASUREMENT
    metric: str = DEFAULT_METRIC
    unit: str = DEFAULT_UNIT
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD
    source_id: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    paths: SyncPaths | None = None

    @property
    def resolved_paths(self) -> SyncPaths:
        """Configured paths, falling back to the schema defaults."""
        if self.paths is not None:
            return self.paths
        return SyncPaths.for_schema(self.schema)

    @property
    def alert_kind(self) -> str:
        return f"high_{self.metric}"

    @property
    def resolved_source_id(self) -> str:
        if self.source_id is not None:
            return self.source_id
        if self.schema == SchemaVariant.HISTORY_ENTRY:
            return HISTORY_ENTRY_SOURCE_ID
        return DEFAULT_SOURCE_ID

    @property
    def listening_message(self) -> str:
        """Connection status reported once the listeners are registered."""
        if self.schema == SchemaVariant.HISTORY_ENTRY:
            return "Listening for updates..."
        return f"Listening for {self.metric} data..."

    @property
    def blank_input_message(self) -> str:
        if self.schema == SchemaVariant.HISTORY_ENTRY:
            return "Please enter a value"
        return f"Please enter a {self.metric} value"

    def validate(self) -> None:
        """Raise :class:`TurbidityConfigError` when the config is unusable."""
        url = self.database_url.strip()
        if not url:
            raise TurbidityConfigError("database_url must be non-empty")
        if not url.startswith(("https://", "http://")):
            raise TurbidityConfigError(f"database_url must be an http(s) URL, got {url!r}")
        if self.request_timeout <= 0:
            raise TurbidityConfigError("request_timeout must be positive")
        if not self.metric:
            raise TurbidityConfigError("metric must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> TurbidityConfig:
        """Create configuration from environment variables.

        Reads ``TURBIDITY_DATABASE_URL`` and optional ``TURBIDITY_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TurbidityConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TURBIDITY_DATABASE_URL": "database_url",
            "TURBIDITY_AUTH_TOKEN": "auth_token",
            "TURBIDITY_METRIC": "metric",
            "TURBIDITY_UNIT": "unit",
            "TURBIDITY_SOURCE_ID": "source_id",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        schema_env = env.get("TURBIDITY_SCHEMA")
        if schema_env is not None and "schema" not in overrides:
            try:
                config_kwargs["schema"] = SchemaVariant(schema_env.strip().lower())
            except ValueError as exc:
                raise TurbidityConfigError(f"Unknown TURBIDITY_SCHEMA {schema_env!r}") from exc

        # Numeric fields, handle separately
        for env_key, field_name in (
            ("TURBIDITY_ALERT_THRESHOLD", "alert_threshold"),
            ("TURBIDITY_REQUEST_TIMEOUT", "request_timeout"),
        ):
            raw_number = env.get(env_key)
            if raw_number is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(raw_number)
            except ValueError as exc:
                raise TurbidityConfigError(f"{env_key} must be a number, got {raw_number!r}") from exc

        config_kwargs.update(overrides)
        if "database_url" not in config_kwargs:
            raise TurbidityConfigError("TURBIDITY_DATABASE_URL is not set")

        return cls(**config_kwargs)
