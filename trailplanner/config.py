import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

# External services
OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
ELEVATION_API_URL = os.getenv(
    "ELEVATION_API_URL", "https://api.open-elevation.com/api/v1/lookup"
)
ELEVATION_TIMEOUT_S = float(os.getenv("ELEVATION_TIMEOUT_S", "10"))

# Trail data
MIN_ZOOM = int(os.getenv("MIN_ZOOM", "13"))  # Minimum zoom level to load trails
REGION_CACHE_TTL_S = float(os.getenv("REGION_CACHE_TTL_S", str(7 * 24 * 60 * 60)))

# Waypoint thresholds, in screen pixels so behaviour is the same at every zoom
SNAP_THRESHOLD_PIXELS = 50  # drag: snap to a node within this visual distance
CUSTOM_WAYPOINT_THRESHOLD_PIXELS = 100  # click: custom waypoint beyond this
PRESERVE_SNAP_DISTANCE_M = 500  # re-snap radius when trail data is reloaded

# Frontend origins allowed by CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
