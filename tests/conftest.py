import os
import shlex
import sys
import textwrap
from pathlib import Path

import pytest

# Ensure src/ is on sys.path so the layer packages are importable
SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
    sys.path.insert(0, SRC)


FAKE_ENGINE = textwrap.dedent('''
    """Stand-in for ffmpeg: prints ffmpeg-style stderr and writes the output file."""
    import os
    import sys
    import time

    args = sys.argv[1:]
    src = args[args.index("-i") + 1]
    name = os.path.basename(src)
    dst = args[-1]

    sys.stderr.write("ffmpeg version fake-engine\\n")
    sys.stderr.write("Input #0, mov,mp4,m4a,3gp,3g2,mj2, from '%s':\\n" % src)
    if "nodur" not in name:
        sys.stderr.write("  Duration: 00:00:10.00, start: 0.000000, bitrate: 1000 kb/s\\n")
    sys.stderr.flush()

    for t in ("00:00:02.50", "N/A", "00:00:05.00", "00:00:10.00"):
        sys.stderr.write(
            "frame=   10 fps=0.0 q=-1.0 size=       1kB time=%s bitrate=   1.0kbits/s speed=2.00x\\r" % t
        )
        sys.stderr.flush()

    if "hang" in name:
        time.sleep(60)

    if "fail" in name:
        sys.stderr.write("\\n%s: Invalid data found when processing input\\n" % src)
        sys.exit(1)

    with open(dst, "w") as f:
        f.write(" ".join(args))
    sys.stderr.write("\\n")
''')


@pytest.fixture
def fake_engine(tmp_path) -> str:
    """Engine command string running the fake ffmpeg script."""
    script = tmp_path / "fake_ffmpeg.py"
    script.write_text(FAKE_ENGINE)
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


@pytest.fixture
def make_input(tmp_path):
    """Create an input file under tmp_path/inputs and return its path as str."""
    inputs = tmp_path / "inputs"
    inputs.mkdir(exist_ok=True)

    def _make(name: str) -> str:
        path = inputs / name
        path.write_bytes(b"\x00" * 16)
        return str(path)

    return _make


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Run the test from an empty working directory, where outputs land."""
    out = tmp_path / "work"
    out.mkdir()
    monkeypatch.chdir(out)
    return out
