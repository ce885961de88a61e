from __future__ import annotations

"""Turn flat comment rows into a reply forest.

Rows may be repository records, pydantic models or plain dicts. A reply whose
parent is not in the batch (deleted, or filtered out by scope) is promoted to
a root instead of being lost. Sibling lists are ordered by
`(timecode_ms, created_at)`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.comments import CommentNode
from app.schemas.enums import CommentRole, CommentStatus


def _get(row: Any, name: str, default: Any = None) -> Any:
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def iso_timestamp(value: Any) -> str:
    """ISO-8601 text for a datetime (UTC, millisecond precision) or passthrough."""
    if isinstance(value, datetime):
        # Naive values come from the database and are already UTC.
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat(timespec="milliseconds") + "Z"
    return "" if value is None else str(value)


def _timecode(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _enum(enum_cls, value: Any, default):
    try:
        return enum_cls(getattr(value, "value", value))
    except ValueError:
        return default


def _node(row: Any) -> Optional[CommentNode]:
    comment_id = str(_get(row, "id") or "").strip()
    if not comment_id:
        return None
    parent_id = _get(row, "parent_id")
    return CommentNode(
        id=comment_id,
        timecode_ms=_timecode(_get(row, "timecode_ms")),
        body=str(_get(row, "body") or ""),
        author=_get(row, "author"),
        created_at=iso_timestamp(_get(row, "created_at")),
        parent_id=str(parent_id) if parent_id else None,
        role=_enum(CommentRole, _get(row, "role"), CommentRole.CLIENT),
        status=_enum(CommentStatus, _get(row, "status"), CommentStatus.OPEN),
    )


def _sort(nodes: List[CommentNode]) -> None:
    nodes.sort(key=lambda n: (n.timecode_ms, n.created_at))
    for node in nodes:
        _sort(node.replies)


def _reaches(start: Optional[str], target: str, attached: Dict[str, str]) -> bool:
    seen = set()
    current = start
    while current is not None and current not in seen:
        if current == target:
            return True
        seen.add(current)
        current = attached.get(current)
    return False


def build_thread(rows: Iterable[Any]) -> List[CommentNode]:
    by_id: Dict[str, CommentNode] = {}
    for row in rows or ():
        node = _node(row)
        if node is not None and node.id not in by_id:
            by_id[node.id] = node

    roots: List[CommentNode] = []
    attached: Dict[str, str] = {}
    for node in by_id.values():
        parent = by_id.get(node.parent_id) if node.parent_id else None
        # A reply chain that loops back is cut at the node that closes it.
        if parent is not None and not _reaches(parent.id, node.id, attached):
            parent.replies.append(node)
            attached[node.id] = parent.id
        else:
            roots.append(node)

    _sort(roots)
    return roots


__all__ = ["build_thread", "iso_timestamp"]
