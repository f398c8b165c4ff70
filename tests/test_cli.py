import json
from pathlib import Path

from levelchunk.cli import main

from level_factory import flat_bytes, image, level_bytes, solid_flat


def _write(tmp_path: Path, padding: int = 100) -> Path:
    path = tmp_path / "level.dat"
    path.write_bytes(
        level_bytes(
            flats=[solid_flat(1, 2, 1, [0, 2]), flat_bytes(flat_id=4)],
            bumps=[image(1), image(2), image(1)],
            padding=padding,
        )
    )
    return path


def test_inspect_json(tmp_path: Path, capsys):
    path = _write(tmp_path)
    assert main(["-r", "silent", "inspect", str(path), "--json"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["file_size"] == path.stat().st_size
    assert len(info["flats"]) == 2


def test_inspect_plain_output(tmp_path: Path, capsys):
    path = _write(tmp_path)
    assert main(["inspect", str(path)]) == 0
    err = capsys.readouterr().err
    assert "flat [4] FLATNAME 1x1 plain" in err
    assert "bump images: 3 entries, 2 used, 2 distinct" in err


def test_validate_and_verify(tmp_path: Path):
    path = _write(tmp_path)
    assert main(["-r", "silent", "validate", str(path)]) == 0
    assert main(["-r", "silent", "verify", str(path)]) == 0


def test_reindex_writes_same_size(tmp_path: Path):
    path = _write(tmp_path)
    out = tmp_path / "out.dat"
    assert main(["-r", "silent", "reindex", str(path), "-o", str(out)]) == 0
    assert out.stat().st_size == path.stat().st_size
    assert out.read_bytes() != path.read_bytes()


def test_clone_over_capacity_exits_1(tmp_path: Path, capsys):
    path = _write(tmp_path, padding=4)
    out = tmp_path / "out.dat"
    assert main(["clone", str(path), "4", "-o", str(out)]) == 1
    assert not out.exists()
    assert "E_CAPACITY" in capsys.readouterr().err


def test_corrupt_file_exits_2(tmp_path: Path):
    path = tmp_path / "bad.dat"
    path.write_bytes(b"NOPE" + bytes(10))
    assert main(["-r", "silent", "inspect", str(path)]) == 2


def test_apply_script(tmp_path: Path):
    path = _write(tmp_path)
    script = tmp_path / "edits.yaml"
    script.write_text("operations:\n  - op: clone_flat\n    flat: 1\n")
    out = tmp_path / "out.dat"
    code = main(["-r", "silent", "apply", str(path), str(script), "-o", str(out)])
    assert code == 0
    assert out.stat().st_size == path.stat().st_size


def test_invalid_script_exits_1(tmp_path: Path):
    path = _write(tmp_path)
    script = tmp_path / "edits.yaml"
    script.write_text("operations:\n  - op: teleport\n")
    out = tmp_path / "out.dat"
    code = main(["-r", "silent", "apply", str(path), str(script), "-o", str(out)])
    assert code == 1


def test_tree_lists_chunks(tmp_path: Path, capsys):
    path = _write(tmp_path)
    assert main(["-r", "silent", "tree", str(path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[:4] == ["level", "  [1] FLATNAME", "  [4] FLATNAME", "  bump images"]
    assert "    bump #2" in lines
    assert main(["-r", "silent", "tree", str(path), "--depth", "1"]) == 0
    assert len(capsys.readouterr().out.splitlines()) == 6


def test_json_errors_for_corrupt_file(tmp_path: Path, capsys):
    path = tmp_path / "bad.dat"
    path.write_bytes(b"NOPE" + bytes(10))
    assert main(["-r", "silent", "--json-errors", "inspect", str(path)]) == 2
    payload = json.loads(capsys.readouterr().out)
    assert payload["errors"][0]["code"] == "E_MAGIC"


def test_json_errors_for_invalid_script(tmp_path: Path, capsys):
    path = _write(tmp_path)
    script = tmp_path / "edits.yaml"
    script.write_text("operations:\n  - op: teleport\n")
    out = tmp_path / "out.dat"
    argv = ["-r", "silent", "--json-errors", "apply", str(path), str(script)]
    assert main(argv + ["-o", str(out)]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["errors"] == [
        {
            "code": "E_OP",
            "message": "Unknown operation 'teleport'",
            "path": "operations[0].op",
        }
    ]


def test_raw_flag_values_survive_clone(tmp_path: Path):
    path = tmp_path / "level.dat"
    path.write_bytes(
        level_bytes(
            flats=[flat_bytes(flags_bcd=(2, 0, -1), flag_e=3)], padding=100
        )
    )
    out = tmp_path / "out.dat"
    assert main(["-r", "silent", "clone", str(path), "1", "-o", str(out)]) == 0
    assert main(["-r", "silent", "verify", str(out)]) == 0
