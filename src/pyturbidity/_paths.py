"""Slash-delimited path helpers."""

from __future__ import annotations


def normalize_path(path: str) -> str:
    """Strip surrounding slashes and collapse empty segments."""
    return "/".join(segment for segment in path.split("/") if segment)


def join_path(path: str, child_key: str) -> str:
    return normalize_path(f"{path}/{child_key}")
