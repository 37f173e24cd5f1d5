"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, Toolbar, the map and the
playback controls.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects global actions (File -> Open, projection buttons) to
   the FlowMapController.
"""
import logging
import os
from typing import Optional

from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QVBoxLayout, QWidget

from flowmap import config
from flowmap.application import VISIBLE_APP_NAME
from flowmap.controller.flow_map import FlowMapController
from flowmap.controller.scene_sync import SyncResult
from flowmap.model.errors import FlowMapError
from flowmap.model.io import IOManager
from flowmap.model.state import ProjectionKind
from flowmap.view.widgets.map_view import MapView
from flowmap.view.widgets.playback_controls import PlaybackControls
from flowmap.view.widgets.tooltip import TooltipWidget

logger = logging.getLogger(__name__)

JSON_FILTER = "JSON Files (*.json *.topojson *.geojson)"


class MainWindow(QMainWindow):
    def __init__(self, flow_map: Optional[FlowMapController] = None) -> None:
        super().__init__()
        self.flow_map = flow_map or FlowMapController()
        self.transfers_path: Optional[str] = None

        self.update_window_title()
        self.resize(config.VIEWPORT_WIDTH, config.VIEWPORT_HEIGHT + 120)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self.map_view = MapView(self.flow_map.scene, self.flow_map.viewport)
        main_layout.addWidget(self.map_view, stretch=1)

        self.tooltip = TooltipWidget(self.map_view)

        self.controls = PlaybackControls(self.flow_map.scheduler)
        main_layout.addWidget(self.controls)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()
        self._create_toolbar()

        # --- SIGNAL CONNECTIONS ---
        self.flow_map.overlay.content_changed.connect(self.tooltip.on_content_changed)
        self.flow_map.viewport.projection_changed.connect(self.on_projection_changed)
        self.flow_map.scene_synced.connect(self.on_scene_synced)

        self.statusBar().showMessage("Ready")

    def _create_actions(self) -> None:
        # File Actions
        self.act_open_transfers = QAction("Open Transfers...", self)
        self.act_open_transfers.setShortcut("Ctrl+O")
        self.act_open_transfers.triggered.connect(self.on_open_transfers)

        self.act_open_map = QAction("Open Map...", self)
        self.act_open_map.setShortcut("Ctrl+M")
        self.act_open_map.triggered.connect(self.on_open_map)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        # View Actions
        self.act_flat = QAction("Map", self)
        self.act_flat.setCheckable(True)
        self.act_flat.setToolTip("Flat map (Mercator)")
        self.act_flat.triggered.connect(lambda: self.set_projection(ProjectionKind.FLAT))

        self.act_globe = QAction("Globe", self)
        self.act_globe.setCheckable(True)
        self.act_globe.setToolTip("Globe (orthographic); Ctrl + drag to rotate")
        self.act_globe.triggered.connect(lambda: self.set_projection(ProjectionKind.GLOBE))

        self.projection_group = QActionGroup(self)
        self.projection_group.setExclusive(True)
        self.projection_group.addAction(self.act_flat)
        self.projection_group.addAction(self.act_globe)
        self.on_projection_changed(self.flow_map.viewport.projection_kind)

        self.act_reset_view = QAction("Reset View", self)
        self.act_reset_view.setShortcut("Ctrl+0")
        self.act_reset_view.triggered.connect(self.flow_map.viewport.reset)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_open_transfers)
        file_menu.addAction(self.act_open_map)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_flat)
        view_menu.addAction(self.act_globe)
        view_menu.addSeparator()
        view_menu.addAction(self.act_reset_view)

    def _create_toolbar(self) -> None:
        toolbar = self.addToolBar("Navigation")
        toolbar.setMovable(False)
        toolbar.addAction(self.act_flat)
        toolbar.addAction(self.act_globe)
        toolbar.addSeparator()
        toolbar.addAction(self.act_reset_view)

    # --- HELPER METHODS ---

    def update_window_title(self) -> None:
        name = os.path.basename(self.transfers_path) if self.transfers_path else "No data"
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{name}]")

    def show_error(self, title: str, error: Exception) -> None:
        logger.exception(f"{title}: {error}")
        QMessageBox.critical(self, title, str(error))

    def set_projection(self, kind: ProjectionKind) -> None:
        try:
            self.flow_map.viewport.set_projection(kind)
        except FlowMapError as e:
            self.show_error("Projection Error", e)

    # --- LOADING ---

    def load_transfers(self, filepath: str, autoplay: bool = config.AUTOPLAY) -> bool:
        try:
            records = IOManager.load_transfers(filepath)
            self.flow_map.set_dataset(records, autoplay=autoplay)
        except (FlowMapError, OSError) as e:
            self.show_error("Could not load transfers", e)
            self.controls.load_from_state()
            return False

        self.transfers_path = filepath
        self.update_window_title()
        self.controls.load_from_state()
        self.statusBar().showMessage(f"Loaded {len(records)} transfers", 5000)
        return True

    def load_map(self, filepath: str) -> bool:
        try:
            features = IOManager.load_map(filepath)
        except (FlowMapError, OSError) as e:
            self.show_error("Could not load map", e)
            return False

        self.flow_map.set_map(features)
        return True

    def load_initial(
        self,
        map_path: Optional[str] = None,
        transfers_path: Optional[str] = None,
        autoplay: bool = config.AUTOPLAY
    ) -> None:
        """Load the given files, falling back to the bundled assets when present."""
        if map_path:
            self.load_map(map_path)
        elif os.path.exists(config.DEFAULT_MAP_PATH):
            self.load_map(config.DEFAULT_MAP_PATH)
        else:
            logger.warning(f"No world map at {config.DEFAULT_MAP_PATH}; drawing routes only.")

        if transfers_path:
            self.load_transfers(transfers_path, autoplay=autoplay)
        elif os.path.exists(config.DEFAULT_TRANSFERS_PATH):
            self.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=autoplay)

    # --- SLOTS ---

    def on_open_transfers(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Open Transfers", "", JSON_FILTER)
        if fname:
            self.load_transfers(fname)

    def on_open_map(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Open Map", "", JSON_FILTER)
        if fname:
            self.load_map(fname)

    def on_projection_changed(self, kind: ProjectionKind) -> None:
        self.act_flat.setChecked(kind == ProjectionKind.FLAT)
        self.act_globe.setChecked(kind == ProjectionKind.GLOBE)

    def on_scene_synced(self, result: SyncResult) -> None:
        count = len(self.flow_map.synchronizer.rendered_ids)
        self.statusBar().showMessage(f"{count} active transfers")

    def closeEvent(self, event, /) -> None:
        self.flow_map.scheduler.pause()
        event.accept()
