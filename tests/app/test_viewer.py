from __future__ import annotations

import io
import json
import os
from pathlib import Path

import pytest

from scenecanvas import cli
from scenecanvas.app import viewer
from scenecanvas.config import RuntimeConfig
from scenecanvas.data.scenes import load_scene


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCENECANVAS_HOME", str(tmp_path / "home"))


def test_parse_args_defaults_and_flags() -> None:
    args = cli.parse_args(["scene.json"])
    assert args.scene == "scene.json"
    assert args.size is None and args.fps is None and args.frames is None
    assert not args.headless and not args.dump

    args = cli.parse_args(
        ["s.yaml", "--size", "320x240", "--fps", "12", "--frames", "3", "--headless"]
    )
    assert args.size == (320, 240)
    assert args.fps == 12.0
    assert args.frames == 3
    assert args.headless is True

    args = cli.parse_args(["s.yaml", "--log-level", "debug", "--out", "x.png"])
    assert args.log_level == "DEBUG"
    assert args.out == "x.png"


def test_parse_args_rejects_bad_size() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["s.json", "--size", "big"])


def test_version_and_missing_scene(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--version"]) == 0
    assert "SceneCanvas" in capsys.readouterr().out
    assert cli.main([]) == 2


def test_dump_instructions(fixtures_dir: Path) -> None:
    root = load_scene(fixtures_dir / "scene_basic.json")
    buf = io.StringIO()
    n = viewer.dump_instructions(root, (64, 48), buf)
    lines = [json.loads(s) for s in buf.getvalue().splitlines()]
    assert len(lines) == n
    assert lines[0] == {"call": "save", "args": []}
    assert lines[1] == {"call": "clearRect", "args": [0, 0, 64, 48]}


@pytest.mark.asyncio
async def test_run_async_dump(
    fixtures_dir: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    await cli.run_async([str(fixtures_dir / "scene_basic.json"), "--dump"])
    first = capsys.readouterr().out.splitlines()[0]
    assert json.loads(first) == {"call": "save", "args": []}


@pytest.mark.asyncio
async def test_headless_run_saves_png(fixtures_dir: Path, tmp_path: Path) -> None:
    pytest.importorskip("pygame")
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    out = tmp_path / "last.png"
    trace = tmp_path / "run.trace"
    args = cli.parse_args(
        [
            str(fixtures_dir / "scene_basic.json"),
            "--headless",
            "--frames",
            "2",
            "--fps",
            "200",
            "--size",
            "80x60",
            "--out",
            str(out),
            "--trace",
            str(trace),
        ]
    )
    cfg = RuntimeConfig(size=(80, 60), fps=200.0, max_frames=2)
    await viewer.main_async(args, config=cfg)
    assert out.exists()
    from scenecanvas.tools.trace import read_trace

    assert len(list(read_trace(trace))) == 2
