import os
import subprocess

import pytest
from PIL import Image

from guff import assemble
from guff.errors import EncoderError, PreconditionError


def _frames(count, size=8):
    return [Image.new("RGB", (size, size), (i * 40 % 256, 0, 0)) for i in range(count)]


def test_delay_centiseconds_rounds_half_up():
    assert assemble.delay_centiseconds(100) == 10
    assert assemble.delay_centiseconds(15) == 2
    assert assemble.delay_centiseconds(104) == 10


def test_build_encoder_command_layout():
    command = assemble.build_encoder_command(
        ["a.gif", "b.gif"], "out.gif", delay_ms=80, colors=64
    )

    assert command == [
        "gifsicle", "--delay", "8", "--loop", "--colors", "64", "-O3",
        "a.gif", "b.gif", "-o", "out.gif",
    ]


def test_check_encoder_missing_binary_is_precondition_error():
    with pytest.raises(PreconditionError, match="required but not found"):
        assemble.check_encoder("guff-no-such-encoder")


def test_write_frame_files_names_frames_in_order(tmp_path):
    paths = assemble.write_frame_files(_frames(3), str(tmp_path))

    assert [os.path.basename(p) for p in paths] == ["frame-0.gif", "frame-1.gif", "frame-2.gif"]
    with Image.open(paths[0]) as first:
        assert first.size == (8, 8)


def test_assemble_gif_invokes_encoder_and_cleans_up(monkeypatch, tmp_path):
    calls = []

    def fake_run(command, **kwargs):
        frame_paths = command[7:-2]
        assert all(os.path.exists(p) for p in frame_paths)
        calls.append(command)
        with open(command[-1], "wb") as handle:
            handle.write(b"GIF89a")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr(assemble.subprocess, "run", fake_run)
    out = tmp_path / "anim.gif"

    result = assemble.assemble_gif(_frames(4), out, delay_ms=100, colors=128)

    assert result == out
    assert out.read_bytes() == b"GIF89a"
    command = calls[0]
    frame_paths = command[7:-2]
    assert [os.path.basename(p) for p in frame_paths] == [f"frame-{i}.gif" for i in range(4)]
    assert not os.path.exists(os.path.dirname(frame_paths[0]))


def test_assemble_gif_failure_reports_stderr_and_cleans_up(monkeypatch, tmp_path):
    seen = {}

    def fake_run(command, **kwargs):
        seen["dir"] = os.path.dirname(command[7])
        raise subprocess.CalledProcessError(1, command, output="", stderr="bad palette")

    monkeypatch.setattr(assemble.subprocess, "run", fake_run)

    with pytest.raises(EncoderError, match="bad palette"):
        assemble.assemble_gif(_frames(2), tmp_path / "x.gif", delay_ms=100, colors=256)

    assert not os.path.exists(seen["dir"])


def test_assemble_gif_requires_frames(tmp_path):
    with pytest.raises(EncoderError):
        assemble.assemble_gif([], tmp_path / "x.gif", delay_ms=100, colors=256)
