import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QCheckBox, QHBoxLayout, QLabel, QPushButton, QSlider, QStyle, QWidget

from flowmap.controller.playback import PlaybackScheduler
from flowmap.model.errors import EmptyDataset
from flowmap.model.state import PlaybackMode, RunState
from flowmap.utils import date_format

logger = logging.getLogger(__name__)


class PlaybackControls(QWidget):
    """
    Play/pause button, loop toggle, time slider and the current date/time.

    The slider counts simulated steps from the start of the window
    (``value = (cursor - min_time) // step``), so long datasets stay inside
    the int range of QSlider.
    """
    def __init__(self, scheduler: PlaybackScheduler, parent=None) -> None:
        super().__init__(parent)
        self.scheduler = scheduler

        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)

        self.btn_play = QPushButton()
        self.btn_play.setIcon(self.style().standardIcon(QStyle.SP_MediaPlay))
        self.btn_play.setToolTip("Play / Pause")
        self.btn_play.clicked.connect(self.toggle_play)
        self.btn_play.setEnabled(False)
        layout.addWidget(self.btn_play)

        self.chk_loop = QCheckBox("Loop")
        self.chk_loop.toggled.connect(self.on_loop_toggled)
        self.chk_loop.setEnabled(False)
        layout.addWidget(self.chk_loop)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setEnabled(False)
        self.slider.valueChanged.connect(self.on_slider_changed)
        layout.addWidget(self.slider, stretch=1)

        self.lbl_time = QLabel("-")
        self.lbl_time.setMinimumWidth(220)
        self.lbl_time.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        layout.addWidget(self.lbl_time)

        self.scheduler.cursor_changed.connect(self.on_cursor_changed)
        self.scheduler.state_changed.connect(self.update_play_icon)
        self.scheduler.mode_changed.connect(self.on_mode_changed)

    def _step(self) -> int:
        return max(1, self.scheduler.step_ms)

    def load_from_state(self) -> None:
        """Re-read the window after a dataset was assigned."""
        state = self.scheduler.state
        loaded = state is not None
        self.btn_play.setEnabled(loaded)
        self.chk_loop.setEnabled(loaded)
        self.slider.setEnabled(loaded)

        self.slider.blockSignals(True)
        try:
            if loaded:
                self.slider.setRange(0, -(-state.span // self._step()))
                self.slider.setValue((state.cursor_time - state.min_time) // self._step())
            else:
                self.slider.setRange(0, 0)
                self.lbl_time.setText("-")
        finally:
            self.slider.blockSignals(False)

        self.on_mode_changed(self.scheduler.mode)
        self.update_play_icon()

    # --- SLOTS ---

    def on_cursor_changed(self, cursor_time: int) -> None:
        state = self.scheduler.state
        self.lbl_time.setText(date_format(cursor_time))
        if state is None:
            return
        self.slider.blockSignals(True)
        try:
            self.slider.setValue((cursor_time - state.min_time) // self._step())
        finally:
            self.slider.blockSignals(False)

    def on_slider_changed(self, index: int) -> None:
        state = self.scheduler.state
        if state is None:
            return
        self.scheduler.scrub(state.min_time + index * self._step())

    def on_loop_toggled(self, checked: bool) -> None:
        self.scheduler.set_mode(PlaybackMode.LOOP_AT_END if checked else PlaybackMode.STOP_AT_END)

    def on_mode_changed(self, mode: PlaybackMode) -> None:
        self.chk_loop.blockSignals(True)
        self.chk_loop.setChecked(mode == PlaybackMode.LOOP_AT_END)
        self.chk_loop.blockSignals(False)

    def toggle_play(self) -> None:
        state = self.scheduler.state
        try:
            # Restart from the beginning when play is pressed at the end
            if state is not None and not self.scheduler.is_playing and state.cursor_time >= state.max_time:
                self.scheduler.scrub(state.min_time)
            self.scheduler.toggle_play()
        except EmptyDataset as e:
            logger.warning(str(e))
        self.update_play_icon()

    def update_play_icon(self, run_state: RunState = None) -> None:
        if self.scheduler.is_playing:
            self.btn_play.setIcon(self.style().standardIcon(QStyle.SP_MediaPause))
        else:
            self.btn_play.setIcon(self.style().standardIcon(QStyle.SP_MediaPlay))
