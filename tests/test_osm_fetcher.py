from unittest.mock import MagicMock

import overpy
import pytest

from trailplanner.domain import BBox, RawNode, TrailData
from trailplanner.osm_fetcher import (
    HIGHWAY_TYPES,
    OSMFetcher,
    RegionCache,
    TrailDataError,
    build_trails_query,
    parse_overpass_result,
)

BBOX = BBox(south=47.0, west=8.0, north=47.01, east=8.01)

OVERPASS_JSON = {
    "elements": [
        {"type": "way", "id": 100, "nodes": [1, 2, 3], "tags": {"highway": "path", "name": "Ridge"}},
        {"type": "way", "id": 200, "nodes": [3, 4], "tags": {"highway": "track"}},
        {"type": "node", "id": 1, "lat": 47.001, "lon": 8.001},
        {"type": "node", "id": 2, "lat": 47.002, "lon": 8.002},
        {"type": "node", "id": 3, "lat": 47.003, "lon": 8.003},
    ]
}


@pytest.fixture
def overpass_result():
    return overpy.Result.from_json(OVERPASS_JSON)


def test_query_covers_bbox_and_highway_types():
    query = build_trails_query(BBOX)
    assert "(47.0,8.0,47.01,8.01)" in query
    assert "[out:json]" in query
    for highway in ("path", "footway", "track", "secondary_link"):
        assert highway in HIGHWAY_TYPES
        assert highway in query


def test_parse_overpass_result(overpass_result):
    data = parse_overpass_result(overpass_result)

    assert set(data.nodes) == {"1", "2", "3"}
    assert data.nodes["2"] == RawNode("2", 47.002, 8.002)
    assert [w.id for w in data.ways] == ["100", "200"]
    assert data.ways[0].node_ids == ("1", "2", "3")
    assert data.ways[0].highway == "path"
    assert data.ways[0].tags["name"] == "Ridge"
    # Node 4 is referenced but missing from the response
    assert data.ways[1].node_ids == ("3", "4")


def test_region_cache_expires():
    cache = RegionCache(ttl_s=60)
    data = TrailData(nodes={}, ways=[])

    cache.put(BBOX, data, now=1000)
    assert cache.get(BBOX, now=1059) is data
    assert cache.get(BBOX, now=1061) is None
    assert len(cache) == 0


def test_region_cache_key_is_rounded():
    cache = RegionCache(ttl_s=60)
    data = TrailData(nodes={}, ways=[])
    cache.put(BBOX, data, now=0)

    nearby = BBox(south=47.0001, west=8.0002, north=47.0099, east=8.0101)
    assert cache.get(nearby, now=1) is data
    assert cache.get(BBox(47.1, 8.0, 47.2, 8.01), now=1) is None


def test_fetch_trails_uses_cache(overpass_result):
    fetcher = OSMFetcher(url="https://overpass.test/api/interpreter")
    fetcher.api = MagicMock()
    fetcher.api.query.return_value = overpass_result

    first = fetcher.fetch_trails(BBOX)
    second = fetcher.fetch_trails(BBOX)

    assert fetcher.api.query.call_count == 1
    assert second is first
    assert len(first.ways) == 2


def test_fetch_trails_failure_raises_and_caches_nothing():
    cache = RegionCache()
    fetcher = OSMFetcher(url="https://overpass.test/api/interpreter", cache=cache)
    fetcher.api = MagicMock()
    fetcher.api.query.side_effect = ConnectionError("overpass timed out")

    with pytest.raises(TrailDataError) as excinfo:
        fetcher.fetch_trails(BBOX)

    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert len(cache) == 0


def test_fetcher_uses_configured_url():
    fetcher = OSMFetcher(url="https://overpass.test/api/interpreter")
    assert fetcher.api.url == "https://overpass.test/api/interpreter"
