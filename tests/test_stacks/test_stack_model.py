# tests/test_stacks/test_stack_model.py

import pytest

from app.schemas.enums import VideoStatus
from app.services.stacks import (
    build_child_to_parent,
    get_next_id_in_stack,
    get_stack_ids_for_video,
    latest_id_for_card,
    normalize_stacks,
    parse_stacks_json,
    sanitize_stacks,
    sanitize_stacks_report,
    stacks_from_order,
    unstack,
    visible_video_ids,
)


STACKS = {"a": ["a", "b", "c"], "d": ["d", "e"]}


def _assert_well_formed(stacks, allowed=None):
    seen = set()
    for parent, ids in stacks.items():
        assert ids, "empty sequences must be dropped"
        assert ids[0] == parent
        for vid in ids:
            assert vid not in seen, f"{vid} appears in two sequences"
            seen.add(vid)
            if allowed is not None:
                assert vid in allowed


# ─────────────────────────────────────────────────────────────
# sanitize
# ─────────────────────────────────────────────────────────────

def test_sanitize_cleans_members_and_forces_parent_first():
    raw = {"a": ["b", "a", " c ", None, "", "b"], "": ["x"], "d": "nope", 5: ["y"]}
    assert sanitize_stacks(raw) == {"a": ["a", "b", "c"]}


@pytest.mark.parametrize("raw", [None, [], ["a"], "text", 42])
def test_sanitize_non_mapping_is_empty(raw):
    assert sanitize_stacks(raw) == {}


def test_sanitize_keeps_ids_in_one_sequence_first_claim_wins():
    raw = {"a": ["a", "b"], "b": ["b", "c"], "x": ["x", "b", "y"]}
    report = sanitize_stacks_report(raw)

    assert report.stacks == {"a": ["a", "b"], "x": ["x", "y"]}
    assert len(report.dropped) == 2
    _assert_well_formed(report.stacks)


def test_sanitize_entry_with_only_blank_members_is_dropped():
    assert sanitize_stacks({"a": [None, "  "]}) == {}


# ─────────────────────────────────────────────────────────────
# normalize
# ─────────────────────────────────────────────────────────────

def test_normalize_restricts_to_allowed_and_first_parent_wins():
    allowed = ["a", "b", "c", "d", "q"]
    raw = {"a": ["a", "b", "z"], "c": ["c", "b", "d"], "q": ["q", "a"]}

    out = normalize_stacks(raw, allowed)

    assert out == {"a": ["a", "b"], "c": ["c", "d"]}
    _assert_well_formed(out, set(allowed))


def test_normalize_is_idempotent():
    allowed = ["a", "b", "c", "d"]
    once = normalize_stacks({"a": ["a", "b", "x"], "c": ["c", "d", "a"]}, allowed)
    assert normalize_stacks(once, allowed) == once


def test_normalize_drops_parents_outside_allow_list():
    assert normalize_stacks({"x": ["x", "a"]}, ["a"]) == {}


def test_normalize_drops_self_references_and_empty_stacks():
    assert normalize_stacks({"a": ["a", "a"]}, ["a"]) == {}


# ─────────────────────────────────────────────────────────────
# lookups
# ─────────────────────────────────────────────────────────────

def test_child_to_parent_maps_only_versions():
    assert build_child_to_parent(STACKS) == {"b": "a", "c": "a", "e": "d"}
    assert build_child_to_parent(None) == {}


def test_child_to_parent_skips_non_string_members():
    raw = {"a": [[1], {"x": 1}, None, 7, "b"], "d": "not-a-list"}
    assert build_child_to_parent(raw) == {"b": "a"}


@pytest.mark.parametrize("card, expected", [("a", "c"), ("b", "c"), ("c", "c"), ("e", "e"), ("zzz", "zzz")])
def test_latest_id_for_card(card, expected):
    c2p = build_child_to_parent(STACKS)
    assert latest_id_for_card(card, STACKS, c2p) == expected


@pytest.mark.parametrize("card", ["a", "b", "c", "d", "e", "zzz"])
def test_latest_id_is_idempotent(card):
    c2p = build_child_to_parent(STACKS)
    latest = latest_id_for_card(card, STACKS, c2p)
    assert latest_id_for_card(latest, STACKS, c2p) == latest


def test_next_id_walks_the_stack_and_ends_with_none():
    assert get_next_id_in_stack("a", STACKS) == "b"
    assert get_next_id_in_stack("b", STACKS) == "c"
    assert get_next_id_in_stack("c", STACKS) is None


def test_next_id_unknown_video_is_none():
    assert get_next_id_in_stack("zzz", STACKS) is None


def test_next_id_for_key_missing_from_its_sequence_is_head():
    # Raw (unsanitized) map where the parent key is not in its own sequence.
    assert get_next_id_in_stack("p", {"p": ["x", "y"]}) == "x"


def test_stack_ids_for_video():
    assert get_stack_ids_for_video("b", STACKS) == ["a", "b", "c"]
    assert get_stack_ids_for_video("d", STACKS) == ["d", "e"]
    assert get_stack_ids_for_video("solo", STACKS) == ["solo"]
    assert get_stack_ids_for_video("", STACKS) == []


def test_visible_ids_hide_versions_behind_parent():
    assert visible_video_ids(["a", "b", "c", "d", "e", "f"], STACKS) == ["a", "d", "f"]


def test_parse_stacks_json_is_defensive():
    assert parse_stacks_json('{"a": ["b", "a"]}') == {"a": ["a", "b"]}
    assert parse_stacks_json("not json") == {}
    assert parse_stacks_json("[1, 2]") == {}
    assert parse_stacks_json(None) == {}


# ─────────────────────────────────────────────────────────────
# owner edits
# ─────────────────────────────────────────────────────────────

READY = VideoStatus.READY


def test_stacks_from_order_uses_first_id_as_parent():
    result = stacks_from_order(["v2", "v1", "ghost"], {}, {"v1": READY, "v2": READY})
    assert result == ({"v2": ["v2", "v1"]}, "v2", ["v2", "v1"])


def test_stacks_from_order_replaces_stacks_touching_the_ids():
    current = {"v1": ["v1", "v3"], "k": ["k", "m"]}
    stacks, parent, ids = stacks_from_order(["v2", "v1"], current, {"v1": READY, "v2": READY})

    assert stacks == {"k": ["k", "m"], "v2": ["v2", "v1"]}
    assert parent == "v2"
    assert ids == ["v2", "v1"]


def test_stacks_from_order_requires_two_ready_videos():
    assert stacks_from_order(["v1"], {}, {"v1": READY}) is None
    assert stacks_from_order(["v1", "v2"], {}, {"v1": READY, "v2": VideoStatus.PROCESSING}) is None


def test_unstack():
    stacks = {"a": ["a", "b"], "c": ["c", "d"]}
    assert unstack("a", stacks) == ({"c": ["c", "d"]}, ["a", "b"])
    assert unstack("b", stacks) is None
