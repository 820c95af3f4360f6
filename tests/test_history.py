"""Tests for sshpick.history — persistence and move-to-front reordering."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from sshpick.entry import HostEntry
from sshpick.errors import DecodeError, EncodeError, ReadError, WriteError
from sshpick.history import (
    delete_at,
    format_timestamp,
    load,
    merge_to_front,
    move_to_front,
    record_connection,
    save,
)

EEST = timezone(timedelta(hours=3), "EEST")
NOW = datetime(2022, 6, 12, 14, 59, 28, tzinfo=EEST)
NOW_STR = "Sun, 12 Jun 2022 14:59:28 EEST"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def history() -> list[HostEntry]:
    return [
        HostEntry("darkstar", "darkstar.local"),
        HostEntry("supernova", "supernova.local", timestamp="T0"),
    ]


@pytest.fixture()
def long_history() -> list[HostEntry]:
    return [HostEntry(h, f"{h}.local", timestamp=f"T{i}") for i, h in enumerate("abcde")]


# ---------------------------------------------------------------------------
# Tests — move_to_front
# ---------------------------------------------------------------------------


class TestMoveToFront:
    @pytest.mark.parametrize(
        ("needle", "haystack", "expected"),
        [
            ("a", [], ["a"]),
            ("a", ["a"], ["a"]),
            ("c", ["a", "b", "c", "d", "e"], ["c", "a", "b", "d", "e"]),
            ("e", ["a", "b", "c", "d", "e"], ["e", "a", "b", "c", "d"]),
            ("f", ["a", "b", "c", "d", "e"], ["f", "a", "b", "c", "d", "e"]),
        ],
        ids=["add if empty", "return same", "move to front", "move last", "prepend if missing"],
    )
    def test_cases(self, needle: str, haystack: list[str], expected: list[str]):
        assert move_to_front(needle, haystack) == expected

    def test_input_not_mutated(self):
        haystack = ["a", "b", "c"]
        move_to_front("c", haystack)
        assert haystack == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Tests — merge_to_front
# ---------------------------------------------------------------------------


class TestMergeToFront:
    def test_adhoc_reconnect_uses_recorded_hostname(self, history: list[HostEntry]):
        merged = merge_to_front(history, HostEntry("supernova", "supernova"), now=NOW)
        assert merged == [
            HostEntry("supernova", "supernova.local", timestamp=NOW_STR),
            HostEntry("darkstar", "darkstar.local"),
        ]

    def test_empty_history(self):
        merged = merge_to_front([], HostEntry("solo", "solo.example"), now=NOW)
        assert merged == [HostEntry("solo", "solo.example", timestamp=NOW_STR)]

    def test_new_host_prepended(self, long_history: list[HostEntry]):
        connected = HostEntry("f", "f.example")
        merged = merge_to_front(long_history, connected, now=NOW)
        assert len(merged) == len(long_history) + 1
        assert merged[0] == HostEntry("f", "f.example", timestamp=NOW_STR)
        assert merged[1:] == long_history

    @pytest.mark.parametrize("position", range(5))
    def test_known_host_moved(self, long_history: list[HostEntry], position: int):
        connected = long_history[position]
        merged = merge_to_front(long_history, HostEntry(connected.host), now=NOW)

        assert len(merged) == len(long_history)
        assert merged[0].host == connected.host
        assert merged[0].hostname == connected.hostname
        assert merged[0].timestamp == NOW_STR
        assert merged[1:] == [e for e in long_history if e.host != connected.host]

    def test_twice_only_timestamp_changes(self, long_history: list[HostEntry]):
        later = NOW + timedelta(minutes=5)
        once = merge_to_front(long_history, HostEntry("c"), now=NOW)
        twice = merge_to_front(once, HostEntry("c"), now=later)

        assert twice[0].timestamp == format_timestamp(later)
        assert twice[0].host == once[0].host
        assert twice[0].hostname == once[0].hostname
        assert twice[1:] == once[1:]

    def test_only_front_has_new_timestamp(self, long_history: list[HostEntry]):
        merged = merge_to_front(long_history, HostEntry("d"), now=NOW)
        assert [e.timestamp for e in merged].count(NOW_STR) == 1

    def test_history_not_mutated(self, history: list[HostEntry]):
        before = list(history)
        merge_to_front(history, HostEntry("supernova"), now=NOW)
        assert history == before

    def test_recorded_extra_kept(self):
        history = [HostEntry("chat.local", "chat", extra="chat")]
        merged = merge_to_front(history, HostEntry("chat.local"), now=NOW)
        assert merged[0].extra == "chat"

    def test_duplicates_pass_through(self):
        history = [HostEntry("a"), HostEntry("b", "b1"), HostEntry("b", "b2")]
        merged = merge_to_front(history, HostEntry("c"), now=NOW)
        assert [(e.host, e.hostname) for e in merged[1:]] == [("a", "a"), ("b", "b1"), ("b", "b2")]

    def test_default_timestamp_is_now(self, history: list[HostEntry]):
        merged = merge_to_front(history, HostEntry("darkstar"))
        parsed = datetime.strptime(merged[0].timestamp[:25], "%a, %d %b %Y %H:%M:%S")
        assert abs(parsed - datetime.now()) < timedelta(minutes=1)


class TestFormatTimestamp:
    def test_format(self):
        assert format_timestamp(NOW) == NOW_STR

    def test_naive_gets_local_zone(self):
        formatted = format_timestamp(datetime(2022, 6, 12, 14, 59, 28))
        assert formatted.startswith("Sun, 12 Jun 2022 14:59:28 ")
        assert formatted.split()[-1]


# ---------------------------------------------------------------------------
# Tests — delete_at
# ---------------------------------------------------------------------------


class TestDeleteAt:
    def test_delete_middle(self, long_history: list[HostEntry]):
        result = delete_at(long_history, 2)
        assert [e.host for e in result] == ["a", "b", "d", "e"]
        assert len(long_history) == 5

    def test_delete_only(self):
        assert delete_at([HostEntry("a")], 0) == []

    @pytest.mark.parametrize("index", [-1, 5, 99])
    def test_out_of_range(self, long_history: list[HostEntry], index: int):
        with pytest.raises(IndexError, match="out of range"):
            delete_at(long_history, index)

    def test_empty(self):
        with pytest.raises(IndexError):
            delete_at([], 0)


# ---------------------------------------------------------------------------
# Tests — load / save
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_round_trip(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "recent.json"
        entries = [*history, HostEntry("chat.local", "chat", extra="chat")]
        assert save(path, entries, overwrite=True) is True
        assert load(path) == entries

    def test_file_format(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "recent.json"
        save(path, history)
        assert json.loads(path.read_text()) == [
            {"Host": "darkstar", "Hostname": "darkstar.local", "Timestamp": ""},
            {"Host": "supernova", "Hostname": "supernova.local", "Timestamp": "T0"},
        ]

    def test_no_overwrite_by_default(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "recent.json"
        path.write_text("[]")
        assert save(path, history) is False
        assert load(path) == []

    def test_overwrite(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "recent.json"
        path.write_text("[]")
        assert save(path, history, overwrite=True) is True
        assert load(path) == history

    def test_creates_parent_dirs(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "nested" / "dir" / "recent.json"
        save(path, history)
        assert path.exists()

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(ReadError):
            load(tmp_path / "absent.json")

    def test_load_invalid_json(self, tmp_path: Path):
        path = tmp_path / "recent.json"
        path.write_text("{not json")
        with pytest.raises(DecodeError, match="invalid JSON"):
            load(path)

    def test_load_not_utf8(self, tmp_path: Path):
        path = tmp_path / "recent.json"
        path.write_bytes(b'[{"Host": "\xff\xfe"}]')
        with pytest.raises(DecodeError, match="not UTF-8"):
            load(path)

    def test_load_wrong_shape(self, tmp_path: Path):
        path = tmp_path / "recent.json"
        path.write_text('{"Host": "a"}')
        with pytest.raises(DecodeError, match="expected a JSON array"):
            load(path)

    def test_load_entry_without_host(self, tmp_path: Path):
        path = tmp_path / "recent.json"
        path.write_text('[{"Hostname": "x"}]')
        with pytest.raises(DecodeError, match="Host"):
            load(path)

    def test_load_optional_fields(self, tmp_path: Path):
        path = tmp_path / "recent.json"
        path.write_text('[{"Host": "bare"}]')
        assert load(path) == [HostEntry("bare", "bare")]

    def test_encode_error(self, tmp_path: Path):
        with pytest.raises(EncodeError):
            save(tmp_path / "recent.json", [object()], overwrite=True)  # type: ignore[list-item]

    def test_write_error(self, tmp_path: Path, history: list[HostEntry]):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(WriteError):
            save(blocker / "recent.json", history, overwrite=True)

    def test_record_connection(self, tmp_path: Path, history: list[HostEntry]):
        path = tmp_path / "recent.json"
        save(path, history)
        merged = record_connection(path, load(path), HostEntry("darkstar"), now=NOW)
        assert load(path) == merged
        assert merged[0] == HostEntry("darkstar", "darkstar.local", timestamp=NOW_STR)
