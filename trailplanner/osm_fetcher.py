import time
from typing import Dict, Optional, Tuple

import overpy

from . import config
from .domain import BBox, RawNode, RawWay, TrailData

HIGHWAY_TYPES = [
    "path",
    "footway",
    "track",
    "bridleway",
    "cycleway",
    "steps",
    "residential",
    "unclassified",
    "tertiary",
    "tertiary_link",
    "secondary",
    "secondary_link",
    "service",
    "pedestrian",
    "living_street",
    "road",
]


class TrailDataError(Exception):
    """Trail data could not be fetched for a bounding box"""


class RegionCache:
    """Fetched trail data keyed by rounded bounding box, with expiry"""

    def __init__(self, ttl_s: float = None):
        self.ttl_s = config.REGION_CACHE_TTL_S if ttl_s is None else ttl_s
        self._regions: Dict[str, Tuple[float, TrailData]] = {}

    def get(self, bbox: BBox, now: float = None) -> Optional[TrailData]:
        key = bbox.cache_key()
        cached = self._regions.get(key)
        if cached is None:
            return None

        timestamp, data = cached
        now = time.time() if now is None else now
        if now - timestamp > self.ttl_s:
            del self._regions[key]
            return None
        return data

    def put(self, bbox: BBox, data: TrailData, now: float = None) -> None:
        self._regions[bbox.cache_key()] = (time.time() if now is None else now, data)

    def __len__(self):
        return len(self._regions)


def build_trails_query(bbox: BBox) -> str:
    highway_filter = "|".join(HIGHWAY_TYPES)
    return f"""
        [out:json][timeout:25];
        (
            way["highway"~"^({highway_filter})$"]
                ({bbox.south},{bbox.west},{bbox.north},{bbox.east});
        );
        out body;
        >;
        out skel qt;
        """


def parse_overpass_result(result) -> TrailData:
    """Convert an overpy result into raw trail nodes and ways"""
    nodes = {}
    for node in result.nodes:
        node_id = str(node.id)
        nodes[node_id] = RawNode(id=node_id, lat=float(node.lat), lon=float(node.lon))

    ways = []
    for way in result.ways:
        # Node ids as listed by the way; nodes outside the response are
        # dropped later by the graph builder. overpy only exposes them through
        # the private _node_ids: Way.get_nodes() raises DataIncomplete on the
        # first missing node unless it is allowed to query Overpass again.
        node_ids = tuple(str(node_id) for node_id in (way._node_ids or []))
        ways.append(RawWay(id=str(way.id), node_ids=node_ids, tags=dict(way.tags)))

    return TrailData(nodes=nodes, ways=ways)


class OSMFetcher:
    def __init__(self, url: str = None, cache: RegionCache = None):
        self.api = overpy.Overpass(url=url or config.OVERPASS_URL)
        self.cache = cache if cache is not None else RegionCache()

    def fetch_trails(self, bbox: BBox) -> TrailData:
        """
        Get trail nodes and ways for bounds.
        Raises TrailDataError when the Overpass query fails.
        """
        cached = self.cache.get(bbox)
        if cached is not None:
            print(f"Using cached trail data for {bbox.cache_key()}")
            return cached

        query = build_trails_query(bbox)
        try:
            print("Executing OSM query...")
            result = self.api.query(query)
        except Exception as e:
            print(f"Error fetching trails: {str(e)}")
            print(f"Query was: {query}")
            raise TrailDataError(f"Overpass query failed: {e}") from e

        data = parse_overpass_result(result)
        print(f"Query result: {len(data.ways)} ways, {len(data.nodes)} nodes found")

        # Print summary of highway types
        highway_counts: Dict[str, int] = {}
        for way in data.ways:
            highway = way.tags.get("highway", "unknown")
            highway_counts[highway] = highway_counts.get(highway, 0) + 1
        print("\nHighway types found:")
        for highway_type, count in sorted(highway_counts.items()):
            print(f"- {highway_type}: {count}")

        self.cache.put(bbox, data)
        return data
