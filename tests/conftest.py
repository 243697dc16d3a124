import json
import os
import subprocess
import time
from pathlib import Path

import pytest
from PIL import Image

import symedia.metadata.extract as extract_module

EXIF_DATETIME = 0x0132  # IFD0 DateTime, read back by exifread as 'Image DateTime'


@pytest.fixture(autouse=True)
def utc_timezone():
    """Pins local time to UTC so derived names do not depend on the host."""
    old = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    time.tzset()
    try:
        yield
    finally:
        if old is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = old
        time.tzset()


@pytest.fixture(params=["UTC", "EST+05"])
def local_zone(request, monkeypatch):
    """Runs the test at UTC and west of it."""
    monkeypatch.setenv("TZ", request.param)
    time.tzset()
    return request.param


@pytest.fixture
def make_jpeg():
    """Writes a real JPEG, optionally with an EXIF DateTime."""
    def _make(path: Path, exif_datetime=None, size=(32, 24)) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with Image.new("RGB", size, color="red") as im:
            if exif_datetime is None:
                im.save(path, format="JPEG")
            else:
                exif = Image.Exif()
                exif[EXIF_DATETIME] = exif_datetime
                im.save(path, format="JPEG", exif=exif)
        return path
    return _make


class FakeProbe:
    """
    Stands in for the ffprobe executable. Results are keyed by file name:
    a report dict, a raw output string, or an exception to raise. Unknown
    names exit non-zero.
    """

    def __init__(self):
        self.results = {}
        self.calls = []

    def add(self, name, streams=None, format_tags=None):
        self.results[name] = {
            "streams": streams or [],
            "format": {"tags": format_tags or {}},
        }

    def check_output(self, cmd, **kwargs):
        self.calls.append(cmd)
        result = self.results.get(Path(cmd[1]).name)
        if result is None:
            raise subprocess.CalledProcessError(1, cmd)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return result
        return json.dumps(result)


@pytest.fixture
def fake_ffprobe(monkeypatch):
    probe = FakeProbe()
    monkeypatch.setattr(extract_module.subprocess, "check_output", probe.check_output)
    return probe
