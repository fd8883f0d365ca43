"""Partial-update helpers.

A mask is a list of dotted paths naming the fields of a stored object to
overwrite from a patch body. An empty mask means every path in the resource's
default set.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any, TypeVar

from pydantic import BaseModel

from lession.core.errors import ValidationError

T = TypeVar("T")

SERIES_MASK_PATHS: tuple[str, ...] = (
    "slug",
    "title",
    "summary",
    "language",
    "level",
    "tags",
    "cover_url",
    "status",
    "author_ids",
)

EPISODE_MASK_PATHS: tuple[str, ...] = (
    "seq",
    "title",
    "description",
    "duration",
    "status",
    "resource",
    "transcript",
)

# Accepted in addition to the defaults above; not applied on an empty mask.
EPISODE_NESTED_PATHS: tuple[str, ...] = (
    "resource.asset_id",
    "resource.type",
    "resource.playback_url",
    "resource.mime_type",
    "transcript.language",
    "transcript.format",
    "transcript.content",
)

ASSET_MASK_PATHS: tuple[str, ...] = (
    "status",
    "playback_url",
    "mime_type",
    "filesize",
    "original_filename",
    "duration",
)


def _patch_value(patch: BaseModel, path: str) -> Any:
    value: Any = patch
    for part in path.split("."):
        value = getattr(value, part)
    if isinstance(value, BaseModel):
        return value.to_domain()  # type: ignore[attr-defined]
    if isinstance(value, list):
        return list(value)
    return value


def _assign(target: Any, path: str, value: Any) -> Any:
    head, _, rest = path.partition(".")
    if not rest:
        return replace(target, **{head: value})
    return replace(target, **{head: _assign(getattr(target, head), rest, value)})


def apply_field_mask(
    target: T,
    patch: BaseModel,
    paths: Sequence[str],
    *,
    defaults: Sequence[str],
    extra: Sequence[str] = (),
) -> T:
    """Return a copy of ``target`` with the masked fields taken from ``patch``.

    Unknown paths raise ``ValidationError`` before anything is applied.
    """
    selected = [p.strip() for p in paths if p and p.strip()] or list(defaults)
    allowed = set(defaults) | set(extra)
    for path in selected:
        if path not in allowed:
            raise ValidationError(f"unsupported update path {path!r}")

    updated = target
    for path in selected:
        updated = _assign(updated, path, _patch_value(patch, path))
    return updated
