from dataclasses import dataclass
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from . import config
from .domain import BBox, TrailData
from .elevation import OpenElevationClient, build_elevation_profile, fetch_elevations
from .geodesy import pixels_to_meters
from .gpx_export import route_to_gpx
from .graph_builder import build_routing_graph
from .models import (
    AddWaypointRequest,
    BuildRouteRequest,
    DeleteWaypointRequest,
    GeoJSONLineString,
    LoadTrailsRequest,
    LoadTrailsResponse,
    MoveWaypointRequest,
    PlotRequest,
    RouteModel,
    RouteRequest,
    SnapRequest,
    Waypoint,
    route_from_domain,
    route_to_domain,
    waypoint_from_domain,
    waypoint_to_domain,
)
from .osm_fetcher import OSMFetcher, TrailDataError
from .plotting import render_route_png
from .preservation import preserve_route
from .route import Route
from .router import Router, snap_waypoint

app = FastAPI(
    title="Trail Planner",
    description="Multi-waypoint hiking routes snapped to OpenStreetMap trails",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class TrailState:
    """Router for the currently loaded area; generation bumps on every swap"""

    router: Optional[Router] = None
    bbox: Optional[BBox] = None
    generation: int = 0


# Initialize collaborators
osm_fetcher = OSMFetcher()
elevation_client = OpenElevationClient()
state = TrailState()


def require_router() -> Router:
    if state.router is None:
        raise HTTPException(status_code=409, detail="No trail data loaded")
    return state.router


def parse_route(model: RouteModel) -> Route:
    try:
        return route_to_domain(model)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def trail_network(trails: TrailData) -> List[GeoJSONLineString]:
    """Convert ways to GeoJSON"""
    network = []
    for way in trails.ways:
        coords = [
            (trails.nodes[node_id].lon, trails.nodes[node_id].lat)
            for node_id in way.node_ids
            if node_id in trails.nodes
        ]
        if len(coords) >= 2:
            network.append(GeoJSONLineString(coordinates=coords))
    return network


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.post("/trails/load", response_model=LoadTrailsResponse)
def load_trails(request: LoadTrailsRequest):
    if request.zoom is not None and request.zoom < config.MIN_ZOOM:
        raise HTTPException(
            status_code=400,
            detail=f"Zoom in to at least level {config.MIN_ZOOM} to load hiking paths",
        )

    bbox = request.bbox.to_domain()
    current_route = parse_route(request.route) if request.route else None

    # A failed fetch leaves the previous router in place so the load can be retried
    try:
        trails = osm_fetcher.fetch_trails(bbox)
    except TrailDataError as e:
        raise HTTPException(status_code=502, detail=str(e))

    router = Router(build_routing_graph(trails.nodes, trails.ways))
    state.router = router
    state.bbox = bbox
    state.generation += 1

    preserved = preserve_route(current_route, router, bbox)
    return LoadTrailsResponse(
        node_count=router.node_count,
        edge_count=router.edge_count,
        generation=state.generation,
        route=route_from_domain(preserved),
        trail_network=trail_network(trails),
    )


@app.post("/waypoints/snap", response_model=Waypoint)
def snap(request: SnapRequest):
    router = require_router()
    threshold = pixels_to_meters(
        config.CUSTOM_WAYPOINT_THRESHOLD_PIXELS, request.lat, request.zoom
    )
    return waypoint_from_domain(snap_waypoint(router, request.lat, request.lon, threshold))


@app.post("/route", response_model=RouteModel)
def build_route(request: BuildRouteRequest):
    router = require_router()
    waypoints = [waypoint_to_domain(w) for w in request.waypoints]
    return route_from_domain(Route.from_waypoints(waypoints, router))


@app.post("/route/waypoints", response_model=RouteModel)
def add_waypoint(request: AddWaypointRequest):
    router = require_router()
    route = parse_route(request.route)
    return route_from_domain(
        route.add_waypoint(waypoint_to_domain(request.waypoint), router)
    )


@app.post("/route/waypoints/delete", response_model=RouteModel)
def delete_waypoint(request: DeleteWaypointRequest):
    router = require_router()
    route = parse_route(request.route)
    try:
        return route_from_domain(route.delete_waypoint(request.index, router))
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/route/waypoints/move", response_model=RouteModel)
def move_waypoint(request: MoveWaypointRequest):
    router = require_router()
    route = parse_route(request.route)
    threshold = pixels_to_meters(config.SNAP_THRESHOLD_PIXELS, request.lat, request.zoom)
    waypoint = snap_waypoint(router, request.lat, request.lon, threshold)
    try:
        return route_from_domain(route.move_waypoint(request.index, waypoint, router))
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/route/elevation", response_model=RouteModel)
async def route_elevation(request: RouteRequest):
    route = parse_route(request.route)
    generation = state.generation

    profiled = await build_elevation_profile(route, elevation_client)
    if profiled is None:
        raise HTTPException(
            status_code=400, detail="Route needs at least two waypoints"
        )

    # Trail data changed while the lookup was in flight
    if state.generation != generation:
        raise HTTPException(status_code=409, detail="Route is stale")
    return route_from_domain(profiled)


@app.post("/route/gpx")
async def export_gpx(request: RouteRequest, with_elevation: bool = False):
    route = parse_route(request.route)
    if route.is_empty:
        raise HTTPException(status_code=400, detail="Route is empty")

    elevations = None
    if with_elevation:
        elevations = await fetch_elevations(route.collect_coordinates(), elevation_client)

    return Response(
        content=route_to_gpx(route, elevations),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": 'attachment; filename="hiking-route.gpx"'},
    )


@app.post("/debug/plot")
def plot_trails(request: PlotRequest):
    """PNG of the loaded trail graph, with the route drawn on top if given"""
    router = require_router()
    route = parse_route(request.route) if request.route else None
    return Response(
        content=render_route_png(router.routing_graph, route),
        media_type="image/png",
    )
