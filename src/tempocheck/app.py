"""DearPyGUI entry point: load an audio file, play it and detect its BPM.

Run with: `uv run task run`
"""

from __future__ import annotations

import threading
from typing import Optional


def main() -> None:
    """Launch the tempo checker window."""
    # Import locally to avoid hard dependency at import time
    from pathlib import Path

    import dearpygui.dearpygui as dpg
    import numpy as np

    # Initialize logging and fault handler
    logs_dir = Path("logs")
    try:
        logs_dir.mkdir(exist_ok=True)
    except OSError:
        pass
    import faulthandler
    import logging

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[
            logging.FileHandler(logs_dir / "app.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    fh = (logs_dir / "faulthandler.log").open("w")
    faulthandler.enable(fh)

    from .decode import AUDIO_EXTENSIONS
    from .errors import AnalysisBusy, TempoError
    from .playback import SoundDeviceTransport
    from .session import AnalysisSession

    session = AnalysisSession(transport_factory=SoundDeviceTransport)

    # State shared between the worker thread and the UI callback
    running = True
    plot_lock = threading.Lock()
    onset_x: Optional[list[float]] = None
    onset_y: Optional[list[float]] = None
    peak_x: Optional[list[float]] = None
    peak_y: Optional[list[float]] = None

    def analysis_worker() -> None:
        nonlocal onset_x, onset_y, peak_x, peak_y
        try:
            session.analyze()
        except AnalysisBusy:
            return
        except TempoError:
            # session already holds the error text
            return
        res = session.last_result
        if res is None:
            return
        # Downsample to at most 512 points for the plot
        n = res.onset.size
        xs = np.arange(n, dtype=np.float64)
        max_points = 512
        if n > max_points:
            idx_ds = np.linspace(0, n - 1, max_points).astype(int)
            xs_ds, ys_ds = xs[idx_ds], res.onset[idx_ds]
        else:
            xs_ds, ys_ds = xs, res.onset
        with plot_lock:
            onset_x = xs_ds.tolist()
            onset_y = ys_ds.tolist()
            peak_x = res.peaks.astype(np.float64).tolist()
            peak_y = res.onset[res.peaks].tolist()

    # UI setup
    dpg.create_context()
    dpg.create_viewport(title="BPM Tempo Checker", width=900, height=640)
    primary_tag = "primary_window"

    def on_close() -> None:
        nonlocal running
        running = False
        if session.transport is not None and session.transport.is_playing:
            session.transport.pause()
        dpg.stop_dearpygui()

    with dpg.window(tag=primary_tag, label="BPM Tempo Checker", width=880, height=600):
        dpg.add_text("Upload an audio file to analyze its tempo")
        with dpg.group(horizontal=True):
            dpg.add_button(label="Choose File", callback=lambda: dpg.show_item("file_dialog"))
            analyze_btn = dpg.add_button(label="Analyze BPM", enabled=False)
            play_btn = dpg.add_button(label="Play Audio", enabled=False)
            reset_btn = dpg.add_button(label="Reset")
        file_name_text = dpg.add_text("", show=False)
        file_size_text = dpg.add_text("", show=False)
        dpg.add_spacer(height=6)
        result_text = dpg.add_text(session.result_text)
        formula_text = dpg.add_text(session.formula_text)
        progress_text = dpg.add_text(session.progress_text(), show=False)
        dpg.add_spacer(height=6)
        onset_series_tag = "onset_series"
        peak_series_tag = "peak_series"
        with dpg.plot(label="Onset strength (frames)", height=320, width=-1):
            dpg.add_plot_axis(dpg.mvXAxis, label="frame")
            y_axis = dpg.add_plot_axis(dpg.mvYAxis, label="flux")
            dpg.add_line_series([0.0, 1.0], [0.0, 0.0], parent=y_axis, tag=onset_series_tag)
            dpg.add_scatter_series([], [], parent=y_axis, tag=peak_series_tag)

        def on_file(sender, app_data, user_data):
            path = app_data.get("file_path_name", "")
            if not path:
                return
            try:
                info = session.load(path)
            except TempoError:
                dpg.configure_item(analyze_btn, enabled=False)
                dpg.configure_item(play_btn, enabled=False)
                return
            dpg.set_value(file_name_text, info.name_text())
            dpg.set_value(file_size_text, info.size_text())
            dpg.configure_item(file_name_text, show=True)
            dpg.configure_item(file_size_text, show=True)
            dpg.configure_item(progress_text, show=True)
            dpg.configure_item(analyze_btn, enabled=True)
            dpg.configure_item(play_btn, enabled=session.transport is not None)
            dpg.set_item_label(play_btn, session.playback_label())

        with dpg.file_dialog(
            show=False,
            callback=on_file,
            tag="file_dialog",
            width=640,
            height=420,
        ):
            dpg.add_file_extension("Audio files{" + ",".join(AUDIO_EXTENSIONS) + "}")
            for ext in AUDIO_EXTENSIONS:
                dpg.add_file_extension(ext)
            dpg.add_file_extension(".*")

        def on_analyze(sender, app_data, user_data):
            if not session.loaded or session.busy:
                return
            dpg.configure_item(analyze_btn, enabled=False)
            threading.Thread(target=analysis_worker, daemon=True).start()

        def on_play(sender, app_data, user_data):
            dpg.set_item_label(play_btn, session.toggle_playback())

        def on_reset(sender, app_data, user_data):
            nonlocal onset_x, onset_y, peak_x, peak_y
            session.reset()
            with plot_lock:
                onset_x = onset_y = peak_x = peak_y = None
            dpg.set_value(onset_series_tag, [[0.0, 1.0], [0.0, 0.0]])
            dpg.set_value(peak_series_tag, [[], []])
            for item in (file_name_text, file_size_text, progress_text):
                dpg.configure_item(item, show=False)
            dpg.configure_item(analyze_btn, enabled=False)
            dpg.configure_item(play_btn, enabled=False)
            dpg.set_item_label(play_btn, session.playback_label())

        dpg.set_item_callback(analyze_btn, on_analyze)
        dpg.set_item_callback(play_btn, on_play)
        dpg.set_item_callback(reset_btn, on_reset)

    dpg.setup_dearpygui()
    dpg.show_viewport()
    dpg.set_primary_window(primary_tag, True)
    dpg.set_exit_callback(on_close)

    def ui_update_callback() -> None:
        dpg.set_value(result_text, session.result_text)
        dpg.set_value(formula_text, session.formula_text)
        if session.loaded:
            dpg.set_value(progress_text, session.progress_text())
            # Player may have reached the end on its own
            dpg.set_item_label(play_btn, session.playback_label())
            dpg.configure_item(analyze_btn, enabled=not session.busy)
        with plot_lock:
            if onset_x and onset_y:
                dpg.set_value(onset_series_tag, [onset_x, onset_y])
                dpg.set_value(peak_series_tag, [peak_x or [], peak_y or []])

    # Schedule periodic UI updates (~10 Hz) using frame callbacks
    def schedule_ui_updates(interval_frames: int = 6) -> None:
        def _tick() -> None:
            if not running:
                return
            ui_update_callback()
            dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

        dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

    schedule_ui_updates()

    dpg.start_dearpygui()
    dpg.destroy_context()
    fh.close()


if __name__ == "__main__":  # pragma: no cover - manual entry
    main()
