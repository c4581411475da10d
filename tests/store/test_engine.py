# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for CacheEngine, the public cache surface."""

from datetime import UTC, datetime, timedelta

import pytest

from stashkit.kernel.exceptions import PersistenceException, ValidationException
from stashkit.store.adapters.memory import InMemoryPersistence
from stashkit.store.codecs import ChainedCodec, FernetCodec, ZlibCodec
from stashkit.store.engine import CacheEngine
from stashkit.store.types import EPOCH, BooleanValue, CacheResult, JsonValue, NumberValue, StringValue


class EraseFailingPersistence(InMemoryPersistence):
    def erase(self, key: str) -> None:
        raise PersistenceException("substrate unavailable")


@pytest.fixture
def adapter() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def engine(adapter, clock) -> CacheEngine:
    return CacheEngine(adapter, clock=clock)


class TestScenario:
    def test_set_get_remove(self, engine, clock):
        start = clock()
        assert engine.set("u1", "profile", "hello", start + timedelta(milliseconds=3_600_000)) is True

        result = engine.get("u1", "profile")
        assert result.found
        assert result.value == StringValue("hello")
        assert result.set_hit_count == 1
        assert result.get_hit_count == 1
        assert result.last_updated_date == start
        assert result.last_accessed_date == start

        engine.remove("u1", "profile")
        miss = engine.get("u1", "profile")
        assert miss == CacheResult.default("u1", "profile")
        assert miss.last_updated_date == EPOCH


class TestExpiration:
    def test_hit_before_and_miss_at_or_after_expiration(self, engine, clock):
        start = clock()
        engine.set("k", "s", "v", start + timedelta(milliseconds=1000))

        clock.advance(milliseconds=999)
        assert engine.get("k", "s").found

        clock.now = start + timedelta(milliseconds=1000)
        assert not engine.get("k", "s").found

        clock.now = start + timedelta(milliseconds=1001)
        assert not engine.get("k", "s").found

    def test_relative_expiration(self, engine, clock):
        engine.set("k", "s", 1, timedelta(seconds=30))
        assert engine.get("k", "s").expiration_date == clock() + timedelta(seconds=30)

    def test_naive_expiration_is_utc(self, engine, clock):
        engine.set("k", "s", 1, datetime(2030, 1, 1))
        assert engine.get("k", "s").expiration_date == datetime(2030, 1, 1, tzinfo=UTC)

    def test_expired_entry_is_not_purged(self, engine, adapter, clock):
        engine.set("k", "s", "v", timedelta(seconds=1))
        clock.advance(seconds=2)
        assert not engine.get("k", "s").found
        assert ("k", "s") in engine.entries
        assert b'"k"' in adapter.read("reusableStore")

    def test_set_revives_expired_key(self, engine, clock):
        engine.set("k", "s", "old", timedelta(seconds=1))
        clock.advance(seconds=5)
        engine.set("k", "s", "new", timedelta(seconds=1))
        result = engine.get("k", "s")
        assert result.value == StringValue("new")
        assert result.set_hit_count == 2

    def test_unsupported_expiration_type(self, engine):
        with pytest.raises(ValidationException):
            engine.set("k", "s", "v", 1000)  # type: ignore[arg-type]


class TestHitCounts:
    def test_counts_per_key(self, engine):
        for _ in range(3):
            engine.set("k1", "s", "v", timedelta(hours=1))
        engine.set("k2", "s", "v", timedelta(hours=1))
        for _ in range(4):
            engine.get("k1", "s")
        engine.get("k2", "s")
        engine.get("missing", "s")

        result = engine.get("k1", "s")
        assert result.set_hit_count == 3
        assert result.get_hit_count == 5

        other = engine.get("k2", "s")
        assert other.set_hit_count == 1
        assert other.get_hit_count == 2

    def test_misses_do_not_count(self, engine, clock):
        engine.set("k", "s", "v", timedelta(seconds=1))
        clock.advance(seconds=2)
        engine.get("k", "s")
        engine.set("k", "s", "v", timedelta(seconds=10))
        assert engine.get("k", "s").get_hit_count == 1

    def test_remove_and_re_add_resets_counters(self, engine):
        engine.set("k", "s", "v", timedelta(hours=1))
        engine.get("k", "s")
        engine.remove("k", "s")
        engine.set("k", "s", "v", timedelta(hours=1))
        result = engine.get("k", "s")
        assert result.set_hit_count == 1
        assert result.get_hit_count == 1

    def test_get_never_changes_last_updated(self, engine, clock):
        start = clock()
        engine.set("k", "s", "v", timedelta(hours=1))
        clock.advance(minutes=5)
        result = engine.get("k", "s")
        assert result.last_updated_date == start
        assert result.last_accessed_date == clock()


class TestOverwrite:
    def test_last_set_wins(self, engine):
        engine.set("k", "s", "v1", timedelta(hours=1))
        engine.set("k", "s", "v2", timedelta(hours=1))
        assert engine.get("k", "s").value == StringValue("v2")
        assert len(engine.entries) == 1

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("text", StringValue("text")),
            (12.5, NumberValue(12.5)),
            (False, BooleanValue(False)),
            ({"theme": "dark", "tags": ["a"]}, JsonValue({"theme": "dark", "tags": ["a"]})),
            (JsonValue([1, 2]), JsonValue([1, 2])),
        ],
    )
    def test_value_variants(self, engine, raw, expected):
        engine.set("k", "s", raw, timedelta(hours=1))
        assert engine.get("k", "s").value == expected

    def test_returned_json_is_a_copy(self, engine):
        engine.set("k", "s", {"items": [1]}, timedelta(hours=1))
        engine.get("k", "s").value.value["items"].append(2)
        assert engine.get("k", "s").value == JsonValue({"items": [1]})

    def test_unserializable_value_raises_before_any_change(self, engine):
        with pytest.raises(ValidationException):
            engine.set("k", "s", object(), timedelta(hours=1))
        assert not engine.get("k", "s").found

    def test_unserializable_json_variant_keeps_other_keys_persisting(self, engine, adapter, clock):
        with pytest.raises(ValidationException) as exc_info:
            engine.set("bad", "s", JsonValue({"x": {1, 2}}), timedelta(hours=1))
        assert exc_info.value.code == "VALUE_NOT_SERIALIZABLE"
        assert not engine.get("bad", "s").found

        assert engine.set("good", "s", "hello", timedelta(hours=1)) is True
        reloaded = CacheEngine(adapter, clock=clock)
        assert reloaded.get("good", "s").value == StringValue("hello")

    @pytest.mark.parametrize(
        "variant",
        [StringValue(123), NumberValue("12"), NumberValue(True), BooleanValue(1)],
    )
    def test_mistyped_variant_is_rejected(self, engine, variant):
        with pytest.raises(ValidationException) as exc_info:
            engine.set("k", "s", variant, timedelta(hours=1))
        assert exc_info.value.code == "VALUE_TYPE_MISMATCH"
        assert len(engine.entries) == 0

    def test_json_variant_is_detached_from_caller(self, engine):
        payload = {"a": 1}
        received = []
        engine.subscribe_to_updates("k", "s", received.append)
        engine.set("k", "s", JsonValue(payload), timedelta(hours=1))
        payload["a"] = 999
        assert engine.get("k", "s").value == JsonValue({"a": 1})
        assert received == [JsonValue({"a": 1})]

    def test_edge_case_keys(self, engine):
        long_key = "x" * 10_000
        engine.set("", "", "empty", timedelta(hours=1))
        engine.set(long_key, "ストア", "long", timedelta(hours=1))
        assert engine.get("", "").value == StringValue("empty")
        assert engine.get(long_key, "ストア").value == StringValue("long")
        assert not engine.get("", "ストア").found


class TestGetCallback:
    def test_callback_invoked_once_on_hit(self, engine):
        engine.set("k", "s", "v", timedelta(hours=1))
        results: list[CacheResult] = []
        returned = engine.get("k", "s", results.append)
        assert results == [returned]

    def test_callback_invoked_once_on_miss(self, engine):
        results: list[CacheResult] = []
        engine.get("k", "s", results.append)
        assert results == [CacheResult.default("k", "s")]


class TestNotifications:
    def test_set_notifies_with_new_value(self, engine):
        received: list[object] = []
        engine.subscribe_to_updates("id1", "storeA", received.append)
        engine.set("id1", "storeA", "hello", timedelta(hours=1))
        engine.set("id1", "storeA", 5, timedelta(hours=1))
        assert received == [StringValue("hello"), NumberValue(5)]

    def test_scoped_to_exact_key(self, engine):
        received: list[object] = []
        engine.subscribe_to_updates("id1", "storeA", received.append)
        engine.set("id2", "storeA", "x", timedelta(hours=1))
        engine.set("id1", "storeB", "x", timedelta(hours=1))
        assert received == []

    def test_unsubscribe_leaves_other_listener(self, engine):
        a: list[object] = []
        b: list[object] = []
        unsubscribe_a = engine.subscribe_to_updates("id1", "storeA", a.append)
        engine.subscribe_to_updates("id1", "storeA", b.append)

        unsubscribe_a()
        engine.set("id1", "storeA", "x", timedelta(hours=1))
        assert a == []
        assert b == [StringValue("x")]

    def test_listener_sees_updated_state(self, engine):
        seen: list[int] = []
        engine.subscribe_to_updates("k", "s", lambda v: seen.append(engine.entries.peek("k", "s").set_hit_count))
        engine.set("k", "s", "v", timedelta(hours=1))
        assert seen == [1]

    def test_get_remove_and_clear_do_not_notify(self, engine):
        received: list[object] = []
        engine.set("k", "s", "v", timedelta(hours=1))
        engine.subscribe_to_updates("k", "s", received.append)
        engine.get("k", "s")
        engine.remove("k", "s")
        engine.clear()
        assert received == []

    def test_subscriptions_survive_clear(self, engine):
        received: list[object] = []
        engine.subscribe_to_updates("k", "s", received.append)
        engine.clear()
        engine.set("k", "s", "v", timedelta(hours=1))
        assert received == [StringValue("v")]


class TestRoundTripPersistence:
    def test_new_engine_sees_persisted_entries(self, adapter, clock):
        codec = ChainedCodec(ZlibCodec(), FernetCodec(FernetCodec.generate_key()))
        first = CacheEngine(adapter, codec, clock=clock)
        expiration = clock() + timedelta(hours=1, microseconds=7)
        first.set("u1", "profile", {"name": "Ada"}, expiration)
        first.get("u1", "profile")

        clock.advance(seconds=1)
        second = CacheEngine(adapter, codec, clock=clock)
        result = second.get("u1", "profile")
        assert result.value == JsonValue({"name": "Ada"})
        assert result.expiration_date == expiration
        assert result.set_hit_count == 1
        assert result.get_hit_count == 2

    def test_remove_is_persisted(self, adapter, clock):
        first = CacheEngine(adapter, clock=clock)
        first.set("a", "s", 1, timedelta(hours=1))
        first.set("b", "s", 2, timedelta(hours=1))
        first.remove("a", "s")
        second = CacheEngine(adapter, clock=clock)
        assert not second.get("a", "s").found
        assert second.get("b", "s").found

    def test_clear_erases_aggregate_key(self, adapter, clock):
        engine = CacheEngine(adapter, aggregate_key="profile-cache", clock=clock)
        engine.set("a", "s", 1, timedelta(hours=1))
        engine.clear()
        assert adapter.read("profile-cache") is None
        assert len(CacheEngine(adapter, aggregate_key="profile-cache", clock=clock).entries) == 0

    def test_aggregate_keys_are_isolated(self, adapter, clock):
        CacheEngine(adapter, aggregate_key="one", clock=clock).set("k", "s", 1, timedelta(hours=1))
        assert not CacheEngine(adapter, aggregate_key="two", clock=clock).get("k", "s").found


class TestQuota:
    def test_oversized_set_does_not_raise(self, clock):
        adapter = InMemoryPersistence(capacity_bytes=600)
        adapter.write("other-app", b"unrelated")
        engine = CacheEngine(adapter, clock=clock)
        assert engine.set("small", "s", "ok", timedelta(hours=1)) is True
        persisted_before = adapter.read("reusableStore")

        assert engine.set("big", "s", "x" * 5_000, timedelta(hours=1)) is False
        assert adapter.read("other-app") == b"unrelated"
        assert adapter.read("reusableStore") == persisted_before

        # memory keeps the change, a rehydrated engine does not
        assert engine.get("big", "s").found
        fresh = CacheEngine(adapter, clock=clock)
        assert not fresh.get("big", "s").found
        assert fresh.get("small", "s").found

    def test_listeners_notified_even_when_persist_fails(self, clock):
        engine = CacheEngine(InMemoryPersistence(capacity_bytes=50), clock=clock)
        received: list[object] = []
        engine.subscribe_to_updates("k", "s", received.append)
        assert engine.set("k", "s", "v" * 100, timedelta(hours=1)) is False
        assert received == [StringValue("v" * 100)]
        assert engine.get_stats()["persist_failures"] >= 1

    def test_clear_swallows_erase_failure(self, clock):
        engine = CacheEngine(EraseFailingPersistence(), clock=clock)
        engine.set("k", "s", "v", timedelta(hours=1))
        engine.clear()
        assert not engine.get("k", "s").found


class TestStats:
    def test_counters(self, engine):
        engine.subscribe_to_updates("k", "s", lambda v: None)
        engine.set("k", "s", "v", timedelta(hours=1))
        engine.set("j", "s", "v", timedelta(hours=1))
        engine.get("k", "s")
        engine.get("missing", "s")
        engine.remove("j", "s")
        engine.remove("j", "s")

        assert engine.get_stats() == {
            "entries": 1,
            "hits": 1,
            "misses": 1,
            "sets": 2,
            "removes": 1,
            "persist_failures": 0,
            "listeners": 1,
        }
