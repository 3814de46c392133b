import io

import pytest
from PIL import Image
from PySide6.QtCore import QCoreApplication

from mediashrink.engine import Engine
from mediashrink.errors import ProcessingError
from mediashrink.worker import CompressionWorker


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeEngine(Engine):
    """
    In-memory engine. Records every call in ``calls`` and writes
    ``output_data`` to the last directive (the output name) on execute.
    """

    def __init__(self, *, progress=(0.25, 0.5, 1.0), output_data=b"compressed",
                 load_error=None, execute_error=None, preloaded=False):
        super().__init__()
        self.progress      = list(progress)
        self.output_data   = output_data
        self.load_error    = load_error
        self.execute_error = execute_error
        self.files: dict[str, bytes] = {}
        self.calls: list[tuple] = []
        self.executed: list[list[str]] = []
        self._loaded = preloaded
        self.before_finish = None   # hook run inside execute, before output is written

    @property
    def loaded(self):
        return self._loaded

    def load(self):
        self.calls.append(("load",))
        if self._loaded:
            return
        if self.load_error is not None:
            raise self.load_error
        self._loaded = True

    def write_input(self, name, data):
        self.calls.append(("write_input", name))
        self.files[name] = data

    def execute(self, directives, on_progress=None):
        self.calls.append(("execute",))
        self.executed.append(list(directives))
        for fraction in self.progress:
            if on_progress is not None:
                on_progress(fraction)
        if self.before_finish is not None:
            self.before_finish()
        if self.execute_error is not None:
            raise self.execute_error
        self.files[directives[-1]] = self.output_data

    def read_output(self, name):
        self.calls.append(("read_output", name))
        try:
            return self.files[name]
        except KeyError:
            raise ProcessingError(f"no output named {name}") from None

    def delete_file(self, name):
        self.calls.append(("delete_file", name))
        self.files.pop(name, None)


@pytest.fixture()
def engine():
    return FakeEngine()


@pytest.fixture()
def loaded_engine():
    return FakeEngine(preloaded=True)


@pytest.fixture()
def synchronous_workers(monkeypatch):
    """Run worker jobs on the test thread: start() calls run() directly."""
    monkeypatch.setattr(CompressionWorker, "start", CompressionWorker.run)


def make_image(width, height, fmt="PNG", mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, (width, height)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def small_png():
    return make_image(64, 48)

