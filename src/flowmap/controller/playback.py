"""
Playback Scheduler
==================
Advances the simulated time cursor that decides which transfers are shown.

Why is this file needed?
------------------------
1. Timing: A repeating QTimer fires every `TICK_INTERVAL_MS` and moves the
   cursor by `TICK_STEP_MS` of simulated time.
2. State machine: Paused/Playing is orthogonal to StopAtEnd/LoopAtEnd. At
   the end of the window the cursor either wraps to the start (loop) or
   clamps to the end and pauses.
3. Determinism: `tick()` is public, so tests (and the scrub slider) drive the
   cursor without waiting for the timer.

Signals:
    cursor_changed(int): Emitted on every tick, scrub and load. Carried as
        `object` because epoch milliseconds overflow a 32-bit Qt int.
    state_changed(RunState)
    mode_changed(PlaybackMode)
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from flowmap import config
from flowmap.model.errors import EmptyDataset
from flowmap.model.flows import FlowRecord, time_bounds
from flowmap.model.state import PlaybackMode, PlaybackState, RunState

logger = logging.getLogger(__name__)


class PlaybackScheduler(QObject):
    cursor_changed = Signal(object)
    state_changed = Signal(object)
    mode_changed = Signal(object)

    def __init__(
        self,
        interval_ms: int = config.TICK_INTERVAL_MS,
        step_ms: int = config.TICK_STEP_MS,
        default_mode: PlaybackMode = config.DEFAULT_PLAYBACK_MODE
    ) -> None:
        super().__init__()
        self.step_ms = step_ms
        self.default_mode = default_mode
        self._state: Optional[PlaybackState] = None

        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.tick)

    @property
    def state(self) -> Optional[PlaybackState]:
        """Current playback state, None until a dataset is loaded."""
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def is_playing(self) -> bool:
        return self._state is not None and self._state.run_state == RunState.PLAYING

    @property
    def cursor_time(self) -> Optional[int]:
        return self._state.cursor_time if self._state else None

    @property
    def mode(self) -> PlaybackMode:
        return self._state.mode if self._state else self.default_mode

    def load(self, records: Iterable[FlowRecord]) -> None:
        """
        Derive the time window from a dataset and rewind to its start.

        Any running playback is stopped first.

        Raises:
            EmptyDataset: If there are no records. The scheduler is left unloaded.
        """
        was_playing = self.is_playing
        self.timer.stop()

        records = list(records)
        try:
            min_time, max_time = time_bounds(records)
        except EmptyDataset:
            self._state = None
            if was_playing:
                self.state_changed.emit(RunState.PAUSED)
            raise

        self._state = PlaybackState(
            cursor_time=min_time,
            min_time=min_time,
            max_time=max_time,
            mode=self.default_mode,
        )
        logger.info(f"Playback window: {min_time} .. {max_time} ({len(records)} records)")
        if was_playing:
            self.state_changed.emit(RunState.PAUSED)
        self.mode_changed.emit(self._state.mode)
        self.cursor_changed.emit(self._state.cursor_time)

    def play(self) -> None:
        """
        Start ticking. Does nothing if already playing.

        Raises:
            EmptyDataset: If no dataset is loaded.
        """
        if self._state is None:
            raise EmptyDataset("Cannot play without a dataset.")
        if self._state.run_state == RunState.PLAYING:
            return
        self._state.run_state = RunState.PLAYING
        self.timer.start()
        logger.debug("Playback started.")
        self.state_changed.emit(RunState.PLAYING)

    def pause(self) -> None:
        self.timer.stop()
        if self._state is None or self._state.run_state == RunState.PAUSED:
            return
        self._state.run_state = RunState.PAUSED
        logger.debug("Playback paused.")
        self.state_changed.emit(RunState.PAUSED)

    def toggle_play(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def tick(self) -> None:
        """Advance the cursor by one step and handle the end of the window."""
        state = self._state
        if state is None:
            return

        state.cursor_time += self.step_ms
        reached_end = state.cursor_time >= state.max_time
        if reached_end:
            if state.mode == PlaybackMode.LOOP_AT_END:
                state.cursor_time = state.min_time
            else:
                state.cursor_time = state.max_time

        logger.debug(f"Tick: cursor={state.cursor_time}")
        self.cursor_changed.emit(state.cursor_time)

        if reached_end and state.mode == PlaybackMode.STOP_AT_END:
            self.pause()

    def set_mode(self, mode: PlaybackMode) -> None:
        if self._state is None:
            logger.debug(f"Ignoring mode {mode.name} without a dataset")
            return
        if mode == self._state.mode:
            return
        self._state.mode = mode
        self.mode_changed.emit(mode)

    def toggle_loop(self) -> None:
        if self.mode == PlaybackMode.LOOP_AT_END:
            self.set_mode(PlaybackMode.STOP_AT_END)
        else:
            self.set_mode(PlaybackMode.LOOP_AT_END)

    def scrub(self, timestamp: int) -> None:
        """Jump to an instant, clamped to the window. The run state is kept."""
        if self._state is None:
            return
        state = self._state
        state.cursor_time = min(state.max_time, max(state.min_time, int(timestamp)))
        self.cursor_changed.emit(state.cursor_time)
