from __future__ import annotations

import json
from pathlib import Path

from fakes import tool
from mcp_cli.cache import CACHE_VERSION, ToolListCache, cache_key
from mcp_cli.settings import RuntimeSettings


class Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_cache(tmp_path: Path, *, ttl_s: float = 60, enabled: bool = True) -> tuple[ToolListCache, Clock]:
    clock = Clock()
    return ToolListCache(tmp_path / "cache", ttl_s=ttl_s, enabled=enabled, clock=clock), clock


def test_set_then_get_returns_tools_in_order(tmp_path: Path):
    cache, _ = make_cache(tmp_path)
    tools = [tool("read_file", "Read a file", path="string"), tool("write_file")]

    cache.set("filesystem", tools)

    assert cache.get("filesystem") == tools


def test_empty_tool_list_is_a_hit_not_a_miss(tmp_path: Path):
    cache, _ = make_cache(tmp_path)

    cache.set("quiet", [])

    assert cache.get("quiet") == []


def test_record_uses_documented_shape(tmp_path: Path):
    cache, clock = make_cache(tmp_path)

    cache.set("github", [tool("search_repos", "Search", query="string")])

    record = json.loads(cache.path_for("github").read_text(encoding="utf-8"))
    assert record["serverName"] == "github"
    assert record["version"] == CACHE_VERSION
    assert record["timestamp"] == int(clock.now * 1000)
    assert record["tools"][0]["name"] == "search_repos"
    assert record["tools"][0]["inputSchema"]["properties"] == {"query": {"type": "string"}}


def test_entry_expires_after_ttl(tmp_path: Path):
    cache, clock = make_cache(tmp_path, ttl_s=60)
    cache.set("api", [tool("ping")])

    clock.now += 59
    assert cache.get("api") is not None

    clock.now += 2
    assert cache.get("api") is None


def test_version_mismatch_is_a_miss(tmp_path: Path):
    cache, clock = make_cache(tmp_path)
    cache.cache_dir.mkdir(parents=True)
    cache.path_for("api").write_text(
        json.dumps(
            {
                "serverName": "api",
                "tools": [{"name": "ping"}],
                "timestamp": int(clock.now * 1000),
                "version": CACHE_VERSION + 1,
            }
        ),
        encoding="utf-8",
    )

    assert cache.get("api") is None


def test_corrupt_or_malformed_records_are_misses(tmp_path: Path):
    cache, _ = make_cache(tmp_path)
    cache.cache_dir.mkdir(parents=True)
    cache.path_for("broken").write_text("{not json", encoding="utf-8")
    cache.path_for("shapeless").write_text(json.dumps(["a", "b"]), encoding="utf-8")
    cache.path_for("nameless").write_text(
        json.dumps({"serverName": "nameless", "tools": [{}], "timestamp": 1, "version": 1}),
        encoding="utf-8",
    )

    cache.path_for("scalar-tools").write_text(
        json.dumps({"serverName": "scalar-tools", "tools": [1], "timestamp": 1, "version": 1}),
        encoding="utf-8",
    )
    cache.path_for("infinite").write_text(
        '{"serverName": "infinite", "tools": [], "timestamp": 1e999, "version": 1}',
        encoding="utf-8",
    )
    cache.path_for("huge").write_text(
        '{"serverName": "huge", "tools": [], "timestamp": 1' + "0" * 400 + ', "version": 1}',
        encoding="utf-8",
    )
    cache.path_for("nan").write_text(
        '{"serverName": "nan", "tools": [], "timestamp": NaN, "version": 1}',
        encoding="utf-8",
    )

    assert cache.get("broken") is None
    assert cache.get("shapeless") is None
    assert cache.get("nameless") is None
    assert cache.get("scalar-tools") is None
    assert cache.get("infinite") is None
    assert cache.get("huge") is None
    assert cache.get("nan") is None
    assert cache.get("never-written") is None
    assert cache.stats() == []


def test_disabled_cache_never_reads_or_writes(tmp_path: Path):
    cache, _ = make_cache(tmp_path, enabled=False)

    cache.set("api", [tool("ping")])

    assert cache.get("api") is None
    assert not cache.cache_dir.exists()


def test_write_failure_is_not_raised(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied", encoding="utf-8")
    cache = ToolListCache(blocker, ttl_s=60)

    cache.set("api", [tool("ping")])

    assert cache.get("api") is None


def test_set_replaces_previous_entry_without_leftover_temp_files(tmp_path: Path):
    cache, _ = make_cache(tmp_path)

    cache.set("api", [tool("old")])
    cache.set("api", [tool("new"), tool("newer")])

    assert [t.name for t in cache.get("api") or []] == ["new", "newer"]
    assert sorted(p.name for p in cache.cache_dir.iterdir()) == ["api.json"]


def test_cache_key_sanitizes_and_shares_colliding_names(tmp_path: Path):
    assert cache_key("my server/v2") == "my_server_v2"
    assert cache_key("ok-name_1") == "ok-name_1"

    cache, _ = make_cache(tmp_path)
    cache.set("a/b", [tool("first")])
    cache.set("a_b", [tool("second")])

    assert cache.path_for("a/b") == cache.path_for("a_b")
    assert [t.name for t in cache.get("a/b") or []] == ["second"]


def test_clear_single_server_and_clear_all(tmp_path: Path):
    cache, _ = make_cache(tmp_path)
    cache.set("one", [tool("a")])
    cache.set("two", [tool("b")])

    cache.clear("one")
    cache.clear("missing")

    assert cache.get("one") is None
    assert cache.get("two") is not None

    cache.clear_all()
    assert cache.get("two") is None
    assert not cache.cache_dir.exists()
    cache.clear_all()


def test_stats_report_age_and_count_including_expired(tmp_path: Path):
    cache, clock = make_cache(tmp_path, ttl_s=10)
    cache.set("alpha", [tool("a"), tool("b")])
    clock.now += 30
    cache.set("beta", [tool("c")])
    clock.now += 5
    (cache.cache_dir / "junk.json").write_text("nope", encoding="utf-8")

    stats = {stat.server_name: stat for stat in cache.stats()}

    assert set(stats) == {"alpha", "beta"}
    assert stats["alpha"].age_s == 35
    assert stats["alpha"].tool_count == 2
    assert stats["beta"].age_s == 5
    assert stats["beta"].tool_count == 1


def test_stats_on_missing_directory_is_empty(tmp_path: Path):
    cache, _ = make_cache(tmp_path)
    assert cache.stats() == []


def test_from_settings_applies_dir_ttl_and_disable_flag(tmp_path: Path):
    cache = ToolListCache.from_settings(
        RuntimeSettings(cache_dir=tmp_path / "c", cache_ttl_s=120, cache_disabled=True)
    )
    assert cache.cache_dir == tmp_path / "c"
    assert cache.ttl_s == 120
    assert cache.enabled is False
