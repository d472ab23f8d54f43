#!/usr/bin/env python3
"""Generate synthetic media with known silent gaps for JumpCut testing.

Tone and silence alternate according to ``PATTERN`` (seconds):
  0-3    440 Hz tone + blue
  3-5    silence + black
  5-9    880 Hz tone + red
  9-10   silence + black
  10-14  660 Hz tone + green

so silencedetect at -30 dB / 0.5 s finds two gaps totalling 3 s. Pass
``--audio-only`` (or an .mp3/.wav output) to skip the video track.
"""

import argparse
import subprocess
from pathlib import Path

# (tone frequency or None for silence, seconds, colour)
PATTERN = [
    (440, 3, "blue"),
    (None, 2, "black"),
    (880, 4, "red"),
    (None, 1, "black"),
    (660, 4, "green"),
]

SILENT_SECONDS = sum(d for f, d, _ in PATTERN if f is None)
TOTAL_SECONDS = sum(d for _, d, _ in PATTERN)


def generate_test_media(output: Path, audio_only: bool = False, ffmpeg: str = "ffmpeg") -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    audio_only = audio_only or output.suffix.lower() in (".mp3", ".wav")
    n = len(PATTERN)

    parts = []
    for i, (freq, dur, _) in enumerate(PATTERN):
        if freq is None:
            parts.append(f"anullsrc=r=44100:cl=mono,atrim=duration={dur}[a{i}]")
        else:
            parts.append(f"sine=f={freq}:d={dur}:r=44100[a{i}]")
    parts.append("".join(f"[a{i}]" for i in range(n)) + f"concat=n={n}:v=0:a=1[aout]")

    maps = ["-map", "[aout]"]
    codecs: list[str] = []
    if not audio_only:
        for i, (_, dur, colour) in enumerate(PATTERN):
            parts.append(f"color=c={colour}:s=320x240:d={dur}:r=30[v{i}]")
        parts.append("".join(f"[v{i}]" for i in range(n)) + f"concat=n={n}:v=1:a=0[vout]")
        maps = ["-map", "[vout]"] + maps
        codecs = ["-c:v", "libx264", "-pix_fmt", "yuv420p", "-c:a", "aac"]

    cmd = [
        ffmpeg, "-y", "-hide_banner", "-loglevel", "error",
        "-filter_complex", ";".join(parts),
        *maps,
        *codecs,
        str(output),
    ]
    subprocess.run(cmd, check=True)
    return output


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("output", nargs="?", type=Path, default=Path("tests/fixtures/synthetic.mp4"))
    parser.add_argument("--audio-only", action="store_true")
    args = parser.parse_args()
    print(f"Generated: {generate_test_media(args.output, audio_only=args.audio_only)}")
