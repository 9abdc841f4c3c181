import json

import pytest

from gestures.library import GestureLibrary
from gestures.storage import JsonFileStore, export_to_file

import main
from conftest import build_points, make_gesture, OPEN_HAND, FIST


@pytest.fixture
def paths(tmp_path):
    return {
        "config": tmp_path / "missing.yaml",
        "library": tmp_path / "gestures.json",
        "tmp": tmp_path,
    }


def run(paths, *args):
    return main.main(["--config", str(paths["config"]), "--library", str(paths["library"]), *args])


def _seed(paths):
    library = GestureLibrary([
        make_gesture(1, "open", build_points(OPEN_HAND)),
        make_gesture(2, "fist", build_points(FIST)),
    ])
    JsonFileStore(paths["library"]).save(library)
    return library


def _write_frames(path, pose, count, step=0.2):
    with open(path, 'w') as f:
        for i in range(count):
            hand = [{"x": p.x, "y": p.y, "z": p.z} for p in build_points(pose)]
            f.write(json.dumps({"hands": [hand], "handedness": ["Right"], "t": i * step}) + "\n")


def test_list_empty(paths, capsys):
    assert run(paths, "list") == 0
    assert "No saved gestures" in capsys.readouterr().out


def test_list_and_delete(paths, capsys):
    _seed(paths)

    assert run(paths, "list") == 0
    out = capsys.readouterr().out
    assert "[1] open: 1 frames" in out
    assert "[2] fist" in out

    assert run(paths, "delete", "1") == 0
    assert [g.name for g in JsonFileStore(paths["library"]).load()] == ["fist"]

    assert run(paths, "delete", "1") == 1
    assert "ERROR" in capsys.readouterr().out


def test_import_export_and_clear(paths):
    source = paths["tmp"] / "dataset.json"
    export_to_file(GestureLibrary([make_gesture(3, "point", build_points())]), source)
    _seed(paths)

    assert run(paths, "import", str(source)) == 0
    assert len(JsonFileStore(paths["library"]).load()) == 3

    assert run(paths, "import", str(source), "--replace") == 0
    assert [g.name for g in JsonFileStore(paths["library"]).load()] == ["point"]

    out_path = paths["tmp"] / "out.json"
    assert run(paths, "export", str(out_path)) == 0
    assert json.loads(out_path.read_text())["totalGestures"] == 1

    assert run(paths, "clear") == 0
    assert len(JsonFileStore(paths["library"]).load()) == 0


def test_recognize_replay(paths, capsys):
    _seed(paths)
    frames = paths["tmp"] / "frames.jsonl"
    _write_frames(frames, FIST, 4)

    assert run(paths, "recognize", str(frames)) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert all("fist (100%)" in line for line in lines)


def test_recognize_without_gestures_fails(paths, capsys):
    frames = paths["tmp"] / "frames.jsonl"
    _write_frames(frames, FIST, 3)

    assert run(paths, "recognize", str(frames)) == 1
    assert "ERROR" in capsys.readouterr().out


def test_practice_replay(paths, capsys):
    _seed(paths)
    frames = paths["tmp"] / "frames.jsonl"
    _write_frames(frames, OPEN_HAND, 3)

    assert run(paths, "practice", "1", str(frames)) == 0
    assert "Completed 'open' (1 frames)" in capsys.readouterr().out


def test_invalid_override_rejected(paths, capsys):
    frames = paths["tmp"] / "frames.jsonl"
    _write_frames(frames, FIST, 1)

    assert run(paths, "recognize", str(frames), "--tolerance", "2") == 2
    assert "ERROR" in capsys.readouterr().out


def test_config_prints_effective_settings(paths, capsys):
    assert run(paths, "config") == 0
    config = json.loads(capsys.readouterr().out)
    assert config["storage"]["path"] == str(paths["library"])
