import json
import os

import pytest

from symedia.core import SymediaApp
from symedia.exceptions import FileOperationError, WalkError
from symedia.main import cmd_process, main, parse_args
from symedia.models import Status


@pytest.fixture
def library(tmp_path, make_jpeg, fake_ffprobe):
    src = tmp_path / "src"
    make_jpeg(src / "2016" / "a.jpg", exif_datetime="2016:07:18 14:05:00")
    make_jpeg(src / "plain.jpg")
    (src / "b.mov").write_bytes(b"video")
    (src / "notes.txt").write_text("x")
    fake_ffprobe.add("b.mov", format_tags={"creation_time": "2016-07-18T02:29:36.000000Z"})
    return src


def test_app_process_writes_outputs(library, tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(tmp_path)
    dest = tmp_path / "out"

    records = SymediaApp().process(library, dest)

    assert [r.status for r in records] == [Status.IMAGE, Status.VIDEO, Status.UNCLASSIFIED, Status.SKIPPED]
    err = capsys.readouterr().err
    assert err.startswith("iv?.\n")
    assert f"?\t{library / 'notes.txt'}" in err
    assert f".\t{library / 'plain.jpg'}" in err

    inventory = json.loads((dest / "files.json").read_text())
    assert [item["flag"] for item in inventory] == ["i", "v", "?", "."]
    assert (dest / "errors.html").exists()
    assert (dest / "2016/07-Jul/2016-07-18/2016-07-18 14.05.00 +0000.jpg").exists()
    assert (dest / "2016/07-Jul/2016-07-18/2016-07-18 02.29.36 +0000.mov").exists()


def test_app_process_twice(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    dest = tmp_path / "out"
    app = SymediaApp()

    first = app.process(library, dest)
    second = app.process(library, dest)

    assert [r.status for r in second[:2]] == [Status.ALREADY_LINKED, Status.ALREADY_LINKED]
    assert [r.link for r in second] == [r.link for r in first]


def test_app_process_missing_source(tmp_path):
    with pytest.raises(WalkError):
        SymediaApp().process(tmp_path / "missing", tmp_path / "out")


def test_app_process_unusable_output(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    dest = tmp_path / "out"
    dest.write_text("file")

    with pytest.raises(FileOperationError):
        SymediaApp().process(src, dest)


def test_parse_args_defaults(tmp_path):
    args = parse_args(["process", str(tmp_path)])

    assert args.path == tmp_path
    assert args.output_dir is None
    assert args.probe_date_layout == "iso"
    assert args.ffprobe == "ffprobe"
    assert not args.keep_names


def test_parse_args_requires_path():
    with pytest.raises(SystemExit):
        parse_args(["process"])


def test_print_template(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["process", "--print-template"])

    assert exc.value.code == 0
    assert "<!DOCTYPE html>" in capsys.readouterr().out


def test_cli_process_default_output(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    code = cmd_process(parse_args(["process", str(library), "--keep-names"]))

    assert code == 0
    out = tmp_path / "output"
    assert (out / "files.json").exists()
    assert (out / "errors.html").exists()
    assert (out / "2016/07-Jul/2016-07-18/a.jpg").exists()


def test_cli_custom_outputs(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    dest = tmp_path / "lib"
    json_out = tmp_path / "inventory.json"
    html_out = tmp_path / "review.html"

    code = cmd_process(parse_args([
        "process", str(library), str(dest),
        "--json", str(json_out), "--template-out", str(html_out),
    ]))

    assert code == 0
    assert json_out.exists()
    assert html_out.exists()
    assert not (dest / "files.json").exists()


def test_cli_missing_path(tmp_path):
    assert cmd_process(parse_args(["process", str(tmp_path / "missing"), str(tmp_path / "out")])) == 1


def test_cli_report_write_failure(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    code = cmd_process(parse_args([
        "process", str(library), str(tmp_path / "out"),
        "--json", str(tmp_path / "no" / "such" / "dir.json"),
    ]))

    assert code == 1


def test_source_is_never_modified(library, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    image = library / "2016" / "a.jpg"
    before = (image.read_bytes(), os.stat(image).st_mode)

    SymediaApp().process(library, tmp_path / "out")

    assert (image.read_bytes(), os.stat(image).st_mode) == before
