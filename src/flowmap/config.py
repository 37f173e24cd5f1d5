"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents hardcoded paths and magic numbers scattered
   throughout the projection, scene and playback code.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (world map, sample transfers) when the app is frozen.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_MAP_PATH (str): Absolute path to the bundled world map (TopoJSON).
    DEFAULT_TRANSFERS_PATH (str): Absolute path to the bundled sample transfers.
"""
import sys
import os
import logging
from pathlib import Path

from flowmap.model.state import PlaybackMode, ProjectionKind

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: resolve relative to this file
    # config.py is in src/flowmap/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Paths
ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_MAP_PATH: str = os.path.join(ASSETS_PATH, "world-map.json")
DEFAULT_TRANSFERS_PATH: str = os.path.join(ASSETS_PATH, "sample_transfers.json")

# Viewport
VIEWPORT_WIDTH: int = 960
VIEWPORT_HEIGHT: int = 500
MIN_SCALE: float = 0.5
MAX_SCALE: float = 32.0
WHEEL_ZOOM_STEP: float = 1.2  # scale factor per 120 wheel units (one notch)
DEFAULT_PROJECTION: ProjectionKind = ProjectionKind.FLAT

# Projections (angles in degrees)
MERCATOR_CENTER: tuple[float, float] = (0.0, 25.0)
MERCATOR_SCALE: float = 150.0
MERCATOR_MAX_LATITUDE: float = 85.0511287798
ORTHOGRAPHIC_CENTER: tuple[float, float] = (5.0, 8.0)
ORTHOGRAPHIC_SCALE: float = 280.0
ORTHOGRAPHIC_CLIP_ANGLE: float = 90.0
GREAT_CIRCLE_SAMPLES: int = 32  # points per route segment

# Scene styling
ARROW_SIZE: float = 4.0
MARKER_RADIUS: float = 3.0
ROUTE_WIDTH: float = 1.5
ROUTE_COLOR_LOW: str = "green"
ROUTE_COLOR_HIGH: str = "red"
MARKER_COLOR: str = "#333333"
LAND_FILL_COLOR: str = "#D8D8D8"
LAND_EDGE_COLOR: str = "#FFFFFF"
BACKGROUND_COLOR: str = "#A4C8E1"

# Playback
TICK_INTERVAL_MS: int = 20
TICK_STEP_MS: int = 100  # simulated milliseconds per tick
DEFAULT_PLAYBACK_MODE: PlaybackMode = PlaybackMode.STOP_AT_END
AUTOPLAY: bool = True

if not os.path.exists(ASSETS_PATH):
    logger.warning(f"Assets path not found at {ASSETS_PATH}")
