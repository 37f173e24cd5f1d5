"""
Application Initialization
==========================
This module constructs the controllers and the main window and starts the
Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Configures logging from the command line.
2. Instantiates the FlowMapController (scene, viewport, playback).
3. Passes it into the MainWindow and loads the initial data.
"""
import argparse
import logging
import sys

from flowmap import config
from flowmap.application import create_app
from flowmap.controller.flow_map import FlowMapController
from flowmap.logging_config import setup_logging
from flowmap.model.state import ProjectionKind
from flowmap.view.main_window import MainWindow


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="flowmap", description="Animated world map of data transfers.")
    parser.add_argument("transfers", nargs="?", help="JSON array of transfers (default: bundled sample)")
    parser.add_argument("--map", dest="map_path", help="TopoJSON or GeoJSON world map")
    parser.add_argument("--projection", type=ProjectionKind.parse, default=config.DEFAULT_PROJECTION,
                        help="mercator (map) or orthographic (globe)")
    parser.add_argument("--no-autoplay", action="store_true", help="Start paused")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", help="Also write the log to this file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # 2. Create the Qt Application
    app = create_app()

    # 3. Initialize the controllers and the Main Window
    flow_map = FlowMapController()
    flow_map.viewport.set_projection(args.projection)
    window = MainWindow(flow_map)

    # 4. Initial data
    window.show()
    window.load_initial(args.map_path, args.transfers, autoplay=not args.no_autoplay)

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
