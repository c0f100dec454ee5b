"""Tests for dataset sources, the dataset client, and the once-only loader."""

from __future__ import annotations

import asyncio
import json
import threading
import time

import httpx
import pytest

from impact_sim.city_index import CityIndex
from impact_sim.clients.dataset_client import DatasetClient
from impact_sim.errors import DatasetUnavailable
from impact_sim.loader import CityDatasetLoader
from impact_sim.parsers import PARSER_MAP, JSONArrayParser
from impact_sim.sources import CITIES_ENV, DATA_DIR_ENV, DatasetSource, default_sources, infer_format, source_for

CITIES = [
    {"name": "Lisbon", "lat": 38.72, "lon": -9.14, "country": "Portugal", "population": 545000},
    {"name": "Porto", "lat": 41.15, "lon": -8.61, "country": "Portugal", "population": 232000},
]


def _write_json(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _geojson(entries):
    return {"type": "FeatureCollection", "features": [
        {"type": "Feature", "properties": {k: v for k, v in e.items() if k not in ("lat", "lon")},
         "geometry": {"type": "Point", "coordinates": [e["lon"], e["lat"]]}}
        for e in entries
    ]}


class CountingParser(JSONArrayParser):
    def __init__(self, delay=0.0):
        super().__init__()
        self.calls = 0
        self.delay = delay
        self.started = threading.Event()

    def parse(self, raw_payload):
        self.calls += 1
        self.started.set()
        time.sleep(self.delay)
        return super().parse(raw_payload)


# ── Source registry tests ────────────────────────────────────────────────


class TestSources:
    def test_infer_format(self):
        assert infer_format("data/cities.geojson") == "geojson"
        assert infer_format("https://example.org/places.ndjson?v=2") == "ndjson"
        assert infer_format("cities.jsonl") == "ndjson"
        assert infer_format("cities.json") == "json"

    def test_source_for(self):
        src = source_for("https://example.org/cities.geojson")
        assert src.is_remote
        assert src.name == "cities.geojson"
        assert src.format == "geojson"
        assert not source_for("/tmp/x.json").is_remote

    def test_default_candidates(self, monkeypatch, tmp_path):
        monkeypatch.delenv(CITIES_ENV, raising=False)
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        sources = default_sources()
        assert [s.format for s in sources] == ["json", "geojson", "geojson"]
        assert sources[0].location.endswith("cities.json")
        assert all(s.location.startswith(str(tmp_path)) for s in sources)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv(CITIES_ENV, "https://example.org/world.geojson")
        sources = default_sources()
        assert len(sources) == 1
        assert sources[0].name == "env"
        assert sources[0].format == "geojson"


# ── Dataset client tests ─────────────────────────────────────────────────


class TestDatasetClient:
    def test_reads_local_file(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES)
        text = asyncio.run(DatasetClient(source_for(str(path))).fetch_text())
        assert json.loads(text) == CITIES

    def test_missing_local_file(self, tmp_path):
        client = DatasetClient(source_for(str(tmp_path / "missing.json")))
        with pytest.raises(OSError):
            asyncio.run(client.fetch_text())

    def test_http_retry_then_success(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            if len(calls) == 1:
                return httpx.Response(503)
            return httpx.Response(200, json=CITIES)

        source = DatasetSource(name="remote", location="https://example.org/c.json", format="json", max_retries=1)

        async def fetch():
            async with DatasetClient(source, transport=httpx.MockTransport(handler)) as client:
                return await client.fetch_text()

        assert json.loads(asyncio.run(fetch())) == CITIES
        assert len(calls) == 2

    def test_http_gives_up(self):
        source = DatasetSource(name="remote", location="https://example.org/c.json", format="json", max_retries=0)
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        async def fetch():
            async with DatasetClient(source, transport=transport) as client:
                return await client.fetch_text()

        with pytest.raises(RuntimeError, match="all 1 attempts failed"):
            asyncio.run(fetch())


# ── Loader tests ─────────────────────────────────────────────────────────


class TestCityDatasetLoader:
    def test_load_blocking(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES)
        loader = CityDatasetLoader([source_for(str(path))])
        assert not loader.is_loaded
        index = loader.load_blocking()
        assert isinstance(index, CityIndex)
        assert [c.name for c in index] == ["Lisbon", "Porto"]
        assert loader.loaded_from == str(path)
        assert loader.load_blocking() is index

    def test_concurrent_loads_share_one_fetch(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES)
        parser = CountingParser()
        loader = CityDatasetLoader([source_for(str(path))], parsers={"json": parser})

        async def many():
            return await asyncio.gather(*(loader.load() for _ in range(5)))

        results = asyncio.run(many())
        assert all(r is results[0] for r in results)
        assert parser.calls == 1
        assert asyncio.run(loader.load()) is results[0]
        assert loader.load_blocking() is results[0]
        assert parser.calls == 1

    def test_threads_and_event_loops_share_one_fetch(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES)
        parser = CountingParser(delay=0.1)
        loader = CityDatasetLoader([source_for(str(path))], parsers={"json": parser})
        results, errors = [], []

        def worker():
            try:
                results.append(asyncio.run(loader.load()))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(3)]
        for t in threads:
            t.start()
        results.append(loader.load_blocking())
        for t in threads:
            t.join()

        assert errors == []
        assert len(results) == 4
        assert all(r is results[0] for r in results)
        assert parser.calls == 1

    def test_reload_while_loading(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES[:1])
        parser = CountingParser(delay=0.1)
        loader = CityDatasetLoader([source_for(str(path))], parsers={"json": parser})
        first = []

        thread = threading.Thread(target=lambda: first.append(asyncio.run(loader.load())))
        thread.start()
        assert parser.started.wait(5)
        _write_json(path, CITIES)
        reloaded = loader.reload_blocking()
        thread.join()

        assert len(reloaded) == 2
        assert loader.index is reloaded
        assert parser.calls == 2

    def test_malformed_records_do_not_fail_load(self, tmp_path):
        path = _write_json(tmp_path / "c.geojson", {"type": "FeatureCollection", "features": [
            {"type": "Feature", "properties": ["oops"], "geometry": None},
            {"type": "Feature", "properties": {"name": "Bad"},
             "geometry": {"type": "Polygon", "coordinates": [[["a", "b"]]]}},
            {"type": "Feature", "properties": {"name": "Faro"},
             "geometry": {"type": "Point", "coordinates": [-7.93, 37.02]}},
        ]})
        loader = CityDatasetLoader([source_for(str(path))])
        assert [c.name for c in loader.load_blocking()] == ["Faro"]
        assert loader.last_error is None

    def test_failure_degrades_to_empty_index(self, tmp_path):
        loader = CityDatasetLoader([
            source_for(str(tmp_path / "a.json"), name="a"),
            source_for(str(tmp_path / "b.geojson"), name="b"),
        ])
        index = loader.load_blocking()
        assert len(index) == 0
        assert loader.is_loaded
        assert isinstance(loader.last_error, DatasetUnavailable)
        assert loader.last_error.tried == ["a", "b"]
        assert index.nearest(0, 0) is None

    def test_falls_through_to_next_source(self, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")
        good = _write_json(tmp_path / "good.geojson", _geojson(CITIES))
        loader = CityDatasetLoader([source_for(str(broken)), source_for(str(good))])
        index = loader.load_blocking()
        assert len(index) == 2
        assert loader.loaded_from == str(good)
        assert loader.last_error is None

    def test_disabled_and_unknown_format_skipped(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES)
        loader = CityDatasetLoader([
            DatasetSource(name="off", location=str(path), format="json", enabled=False),
            DatasetSource(name="csv", location=str(path), format="csv"),
            DatasetSource(name="on", location=str(path), format="json"),
        ])
        assert len(loader.load_blocking()) == 2

    def test_require_population(self, tmp_path):
        bare = _write_json(tmp_path / "bare.json", [{"name": "X", "lat": 1, "lon": 1}])
        full = _write_json(tmp_path / "full.json", CITIES)
        loader = CityDatasetLoader([source_for(str(bare)), source_for(str(full))], require_population=True)
        assert loader.load_blocking().populated_count == 2

        loose = CityDatasetLoader([source_for(str(bare)), source_for(str(full))])
        assert loose.load_blocking().populated_count == 0

    def test_remote_source(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_geojson(CITIES)))
        source = DatasetSource(name="remote", location="https://example.org/c.geojson", format="geojson")
        loader = CityDatasetLoader([source], transport=transport)
        assert len(loader.load_blocking()) == 2

    def test_reload_picks_up_changes(self, tmp_path):
        path = _write_json(tmp_path / "c.json", CITIES[:1])
        loader = CityDatasetLoader([source_for(str(path))])
        first = loader.load_blocking()
        _write_json(path, CITIES)
        second = asyncio.run(loader.reload())
        assert len(first) == 1
        assert len(second) == 2
        assert loader.index is second

    def test_default_sources_from_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.delenv(CITIES_ENV, raising=False)
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
        _write_json(tmp_path / "data" / "cities.geojson", _geojson(CITIES))
        loader = CityDatasetLoader()
        assert len(loader.load_blocking()) == 2
        assert loader.loaded_from.endswith("cities.geojson")

    def test_default_parsers(self):
        assert CityDatasetLoader([]).parsers is PARSER_MAP
