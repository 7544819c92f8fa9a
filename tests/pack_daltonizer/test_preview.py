import threading
from concurrent.futures import ThreadPoolExecutor

from mcsuite.apps.pack_daltonizer.core.models import PREVIEW_JOB_ID, ProcessingSettings
from mcsuite.apps.pack_daltonizer.core.preview import PreviewController
from mcsuite.apps.pack_daltonizer.core.processor import ImageProcessor

SLOW = ProcessingSettings(profile="protanopia", mode="simulate")
FAST = ProcessingSettings(profile="tritanopia", mode="correct")


class _GatedProcessor(ImageProcessor):
    """Holds protanopia jobs until the gate opens."""

    def __init__(self):
        super().__init__()
        self.gate = threading.Event()
        self.slow_started = threading.Event()
        self.slow_finished = threading.Event()
        self.correlation_ids = []

    def handle(self, request):
        self.correlation_ids.append(request.correlation_id)
        if request.settings.profile.value == "protanopia":
            self.slow_started.set()
            self.gate.wait(timeout=5)
            try:
                return super().handle(request)
            finally:
                self.slow_finished.set()
        return super().handle(request)


def test_stale_preview_is_discarded(make_png):
    processor = _GatedProcessor()
    results = []
    with ThreadPoolExecutor(max_workers=2) as pool:
        controller = PreviewController(
            processor, settings=SLOW, executor=pool, on_result=results.append
        )
        first = controller.select_image("block/wool_red.png", make_png())
        assert processor.slow_started.wait(timeout=5)

        second = controller.update_settings(FAST)
        latest = controller.wait(timeout=5)
        assert latest is not None
        assert latest.sequence == second

        processor.gate.set()
        assert processor.slow_finished.wait(timeout=5)
        pool.shutdown(wait=True)

        assert controller.current.sequence == second
        assert controller.current.settings == FAST
        assert [result.sequence for result in results] == [second]
        assert first < second
    assert processor.correlation_ids == [PREVIEW_JOB_ID, PREVIEW_JOB_ID]


def test_refresh_without_selection_does_nothing():
    controller = PreviewController()
    assert controller.refresh() is None
    assert controller.update_settings(FAST) is None
    assert controller.current is None
    assert not controller.loading
    controller.close()


def test_undecodable_selection_reports_error():
    errors = []
    with PreviewController(on_error=errors.append) as controller:
        controller.select_image("block/broken.png", b"not an image")
        assert controller.wait(timeout=5) is None

    assert controller.last_error
    assert errors == [controller.last_error]
    assert not controller.loading


def test_preview_follows_settings(make_png):
    with PreviewController(settings=SLOW) as controller:
        controller.select_image("block/stone.png", make_png((200, 40, 40, 255)))
        simulated = controller.wait(timeout=5)
        controller.update_settings(ProcessingSettings(profile="normal"))
        unchanged = controller.wait(timeout=5)

    assert simulated is not None and unchanged is not None
    assert simulated.data != unchanged.data
    assert unchanged.path == "block/stone.png"
    assert unchanged.sequence > simulated.sequence


def test_clear_discards_in_flight_work(make_png):
    processor = _GatedProcessor()
    results = []
    with ThreadPoolExecutor(max_workers=1) as pool:
        controller = PreviewController(
            processor, settings=SLOW, executor=pool, on_result=results.append
        )
        controller.select_image("block/stone.png", make_png())
        assert processor.slow_started.wait(timeout=5)
        controller.clear()
        assert not controller.loading

        processor.gate.set()
        pool.shutdown(wait=True)

    assert results == []
    assert controller.current is None
    assert controller.selected_path is None
