from __future__ import annotations

"""
Version stacks
==============

A *stack* is the revision history of one creative asset: a mapping from the
original ("parent") video id to the ordered ids of all its versions, parent
first, newest last::

    {"v1": ["v1", "v2", "v3"]}

Stacks are persisted as JSON on galleries and share links, and that JSON is
never trusted: every request rebuilds a clean map from it with
`sanitize_stacks` and, for shared contexts, `normalize_stacks` against the
share's allow-list.

Every function here is pure and total. Malformed input degrades to an empty or
best-effort map; nothing raises, so a broken stack never blocks rendering.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

StackMap = Dict[str, List[str]]
ChildToParentMap = Dict[str, str]

__all__ = [
    "StackMap",
    "ChildToParentMap",
    "StackSanitizeResult",
    "build_child_to_parent",
    "latest_id_for_card",
    "get_stack_ids_for_video",
    "get_next_id_in_stack",
    "sanitize_stacks",
    "sanitize_stacks_report",
    "normalize_stacks",
    "parse_stacks_json",
    "visible_video_ids",
    "stacks_from_order",
    "unstack",
]


def _coerce_id(value: Any) -> str:
    if value is None:
        return ""
    return (value if isinstance(value, str) else str(value)).strip()


def _members(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


# ─────────────────────────────────────────────────────────────────────────────
# Lookups
# ─────────────────────────────────────────────────────────────────────────────

def build_child_to_parent(stacks: Optional[Mapping[str, List[str]]]) -> ChildToParentMap:
    """Map every non-parent member id to the parent that owns it.

    Members that are not strings are skipped; the map may come straight from
    stored JSON.
    """
    out: ChildToParentMap = {}
    if not isinstance(stacks, Mapping):
        return out
    for parent_id, ids in stacks.items():
        for member in _members(ids):
            if isinstance(member, str) and member != parent_id:
                out.setdefault(member, parent_id)
    return out


def latest_id_for_card(
    card_id: str,
    stacks: Mapping[str, List[str]],
    child_to_parent: Mapping[str, str],
) -> str:
    """Newest member of the stack that `card_id` belongs to.

    Unknown ids and ids without a stack resolve to themselves, so a stale deep
    link to a superseded version lands on the current one instead of a 404.
    """
    parent_id = child_to_parent.get(card_id, card_id)
    ids = stacks.get(parent_id) or [parent_id]
    return ids[-1] if ids else parent_id


def get_stack_ids_for_video(
    video_id: str,
    stacks: Mapping[str, List[str]],
    child_to_parent: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """Ordered stack owning `video_id`, or `[video_id]` when it is unstacked."""
    vid = _coerce_id(video_id)
    if not vid:
        return []
    own = _members(stacks.get(vid))
    if own:
        return own
    c2p = child_to_parent if child_to_parent is not None else build_child_to_parent(stacks)
    parent_id = c2p.get(vid)
    if parent_id and _members(stacks.get(parent_id)):
        return _members(stacks[parent_id])
    return [vid]


def get_next_id_in_stack(video_id: str, stacks: Mapping[str, List[str]]) -> Optional[str]:
    """The version after `video_id` in its stack.

    - found and last          -> None
    - found                   -> following id
    - not in resolved stack   -> head of that stack (a parent key whose stored
                                 sequence omits the parent itself)
    """
    vid = _coerce_id(video_id)
    stack = get_stack_ids_for_video(vid, stacks)
    if not stack:
        return None
    try:
        idx = stack.index(vid)
    except ValueError:
        return stack[0]
    return stack[idx + 1] if idx < len(stack) - 1 else None


# ─────────────────────────────────────────────────────────────────────────────
# Cleaning untrusted input
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StackSanitizeResult:
    """Cleaned stacks plus one human-readable note per dropped entry or id."""

    stacks: StackMap
    dropped: Tuple[str, ...] = field(default_factory=tuple)


def sanitize_stacks_report(raw: Any) -> StackSanitizeResult:
    """Clean a stack map of unknown shape and report what was dropped.

    Per entry: the key must be a non-empty string and the value a list. Members
    are coerced to trimmed strings, blanks dropped, duplicates collapsed
    keeping the first occurrence, and the parent moved to the front. Ids
    already claimed by an earlier entry are dropped (first claim wins), and an
    entry whose parent was claimed by an earlier stack is dropped whole.
    """
    if not isinstance(raw, Mapping):
        note = () if raw is None else (f"ignored non-object stacks of type {type(raw).__name__}",)
        return StackSanitizeResult(stacks={}, dropped=note)

    out: StackMap = {}
    claimed: set[str] = set()
    dropped: List[str] = []

    for raw_parent, raw_ids in raw.items():
        if not isinstance(raw_parent, str) or not raw_parent.strip():
            dropped.append(f"entry with invalid key {raw_parent!r}")
            continue
        parent_id = raw_parent.strip()
        if not isinstance(raw_ids, (list, tuple)):
            dropped.append(f"{parent_id}: value is not a list")
            continue

        ids: List[str] = []
        seen: set[str] = set()
        for item in raw_ids:
            member = _coerce_id(item)
            if member and member not in seen:
                seen.add(member)
                ids.append(member)
        if not ids:
            dropped.append(f"{parent_id}: no usable ids")
            continue
        if parent_id in claimed or parent_id in out:
            dropped.append(f"{parent_id}: already part of another stack")
            continue

        versions: List[str] = []
        for member in ids:
            if member == parent_id:
                continue
            if member in claimed or member in out:
                dropped.append(f"{parent_id}: {member} already claimed")
                continue
            versions.append(member)

        claimed.add(parent_id)
        claimed.update(versions)
        out[parent_id] = [parent_id, *versions]

    return StackSanitizeResult(stacks=out, dropped=tuple(dropped))


def sanitize_stacks(raw: Any) -> StackMap:
    """Best-effort clean `StackMap` from untrusted JSON; never raises."""
    return sanitize_stacks_report(raw).stacks


def normalize_stacks(stacks: Optional[Mapping[str, Any]], allowed_ids: Iterable[str]) -> StackMap:
    """Restrict stacks to an allow-list.

    Parents outside `allowed_ids` are dropped, as are children outside it and
    self-references. A child may be claimed by only one parent across the whole
    map: the first parent in insertion order wins. Parents left without any
    version are dropped. Applying this twice with the same allow-list is a
    no-op.
    """
    allowed = {_coerce_id(i) for i in (allowed_ids or ())}
    out: StackMap = {}
    if not isinstance(stacks, Mapping):
        return out

    claimed: set[str] = set()
    for raw_parent, raw_children in stacks.items():
        parent_id = _coerce_id(raw_parent)
        if not parent_id or parent_id not in allowed or parent_id in claimed:
            continue

        versions: List[str] = []
        for raw_child in _members(raw_children):
            child_id = _coerce_id(raw_child)
            if not child_id or child_id == parent_id:
                continue
            if child_id not in allowed or child_id in claimed or child_id in out:
                continue
            claimed.add(child_id)
            versions.append(child_id)

        if versions:
            claimed.add(parent_id)
            out[parent_id] = [parent_id, *versions]

    return out


def parse_stacks_json(text: Optional[str]) -> StackMap:
    """Decode persisted stack JSON; malformed text yields `{}`."""
    if not text:
        return {}
    try:
        raw = json.loads(text)
    except (TypeError, ValueError):
        return {}
    return sanitize_stacks(raw)


# ─────────────────────────────────────────────────────────────────────────────
# Owner-side helpers
# ─────────────────────────────────────────────────────────────────────────────

def visible_video_ids(ordered_ids: Iterable[str], stacks: Mapping[str, List[str]]) -> List[str]:
    """Grid order with stacked versions hidden behind their parent card."""
    c2p = build_child_to_parent(stacks)
    return [vid for vid in ordered_ids if vid not in c2p]


def stacks_from_order(
    ordered_ids: Iterable[Any],
    stacks: Any,
    statuses: Mapping[str, Any],
) -> Optional[Tuple[StackMap, str, List[str]]]:
    """Build a stack from an explicit version order.

    `ordered_ids[0]` becomes the parent. Unknown ids are ignored; at least two
    known ids are required and all of them must be READY. Existing stacks that
    touch any of these ids are replaced. Returns `(stacks, parent_id,
    stack_ids)` or None when the ordering cannot form a stack.
    """
    current = sanitize_stacks(stacks)

    clean: List[str] = []
    for raw in ordered_ids or ():
        vid = _coerce_id(raw)
        if vid and vid not in clean:
            clean.append(vid)

    resolved = [vid for vid in clean if vid in statuses]
    if len(resolved) < 2:
        return None
    if any(getattr(statuses[vid], "value", statuses[vid]) != "READY" for vid in resolved):
        return None

    c2p = build_child_to_parent(current)
    involved = {c2p.get(vid, vid) for vid in resolved}
    nxt: StackMap = {pid: ids for pid, ids in current.items() if pid not in involved}

    parent_id = resolved[0]
    nxt[parent_id] = list(resolved)
    return nxt, parent_id, list(resolved)


def unstack(parent_id: str, stacks: Any) -> Optional[Tuple[StackMap, List[str]]]:
    """Dissolve the stack under `parent_id`; None when it is not a real stack."""
    current = sanitize_stacks(stacks)
    pid = _coerce_id(parent_id)
    ids = current.get(pid)
    if not ids or len(ids) < 2:
        return None
    nxt = {k: v for k, v in current.items() if k != pid}
    return nxt, list(ids)
