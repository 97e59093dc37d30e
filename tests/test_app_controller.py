import time
from unittest.mock import MagicMock

import pytest

pytest.importorskip("tkinter")
pytest.importorskip("customtkinter")

from chromasplit.controllers import app_controller  # noqa: E402
from chromasplit.controllers.app_controller import AppController  # noqa: E402
from chromasplit.models.errors import AnalysisError  # noqa: E402
from chromasplit.models.image_model import AnalysisResult, ChannelKind  # noqa: E402
from chromasplit.services.pipeline_service import PipelineService  # noqa: E402
from imaging import solid_png  # noqa: E402


class FakeWindow:
    """Вместо цикла Tk: отложенные вызовы копятся и выполняются в `drain`."""

    def __init__(self):
        self.pending = []

    def after(self, _ms, fn, *args):
        self.pending.append((fn, args))

    def drain(self, timeout=5.0):
        deadline = time.monotonic() + timeout
        while self.pending and time.monotonic() < deadline:
            fn, args = self.pending.pop(0)
            time.sleep(0.005)
            fn(*args)
        assert not self.pending, "background work did not finish"


class StubAnalyzer:
    def __init__(self, error=None):
        self.error = error

    def analyze(self, image):
        if self.error is not None:
            raise self.error
        return AnalysisResult("warm", "red leads", "vintage")


def make_controller(analyzer=None):
    window = FakeWindow()
    controller = AppController(
        viewer=MagicMock(),
        sidebar=MagicMock(),
        bottom=MagicMock(),
        histogram=MagicMock(),
        window=window,
        pipeline=PipelineService(max_workers=2),
        analyzer=analyzer,
    )
    controller.viewer.get_zoom_percent.return_value = 100
    controller.bind_events()
    return controller, window


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "white.png"
    path.write_bytes(solid_png((255, 255, 255, 255), size=(3, 2)))
    return path


def test_open_shows_channels_and_analysis(image_path):
    controller, window = make_controller(StubAnalyzer())
    controller.open_path(image_path)
    window.drain()

    controller.sidebar.set_image_loaded.assert_called_with(True)
    controller.viewer.set_images.assert_called_once()
    histograms = controller.histogram.set_histograms.call_args.args[0]
    assert histograms is not None
    controller.sidebar.set_analysis_result.assert_called_once_with(AnalysisResult("warm", "red leads", "vintage"))
    controller.shutdown()


def test_analysis_failure_keeps_channels(image_path):
    controller, window = make_controller(StubAnalyzer(AnalysisError("rate limited", status_code=429)))
    controller.open_path(image_path)
    window.drain()

    controller.sidebar.set_analysis_failed.assert_called_once_with("rate limited")
    controller.sidebar.set_analysis_result.assert_not_called()
    controller.viewer.set_images.assert_called_once()
    controller.viewer.clear.assert_called_once()  # только сброс перед запуском
    controller.shutdown()


def test_undecodable_file_clears_result(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"garbage")
    controller, window = make_controller(StubAnalyzer())
    controller.open_path(path)
    window.drain()

    controller.viewer.set_images.assert_not_called()
    controller.sidebar.set_status.assert_called_with("Не удалось обработать файл. Попробуйте другое изображение.")


def test_save_channel_writes_png(image_path, tmp_path, monkeypatch):
    controller, window = make_controller(StubAnalyzer())
    controller.open_path(image_path)
    window.drain()

    target = tmp_path / "saved-red.png"
    dialog = MagicMock(return_value=str(target))
    monkeypatch.setattr(app_controller.filedialog, "asksaveasfilename", dialog)
    controller._handle_save_channel(ChannelKind.RED)

    assert dialog.call_args.kwargs["initialfile"] == "chromasplit-red.png"
    assert target.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
    controller.shutdown()


def test_channel_switch_updates_viewer(image_path):
    controller, window = make_controller(StubAnalyzer())
    controller.open_path(image_path)
    window.drain()

    controller._handle_channel_change(ChannelKind.BLUE)
    shown = controller.viewer.set_channel_image.call_args.args[0]
    assert shown.getpixel((0, 0)) == (0, 0, 255, 255)
    controller.shutdown()


def test_new_file_resets_selected_channel(image_path):
    controller, window = make_controller(StubAnalyzer())
    controller.open_path(image_path)
    window.drain()
    controller._handle_channel_change(ChannelKind.RED)

    controller.open_path(image_path)
    window.drain()

    controller.sidebar.set_channel.assert_called_with(ChannelKind.ORIGINAL)
    original, shown = controller.viewer.set_images.call_args.args
    assert shown.getpixel((0, 0)) == (255, 255, 255, 255)
    controller.shutdown()
