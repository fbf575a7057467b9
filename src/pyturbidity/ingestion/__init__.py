"""Ingestion layer.

This package turns untyped store snapshots into records: kind-matching
normalization, the snapshot decoder and the history projector.
"""

__all__: list[str] = []
