"""JumpCut — cut or speed up the silent parts of video and audio files."""

__version__ = "0.1.0"
