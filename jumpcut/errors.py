"""Exceptions raised by JumpCut."""


class JumpCutError(Exception):
    """Base class for every error surfaced to callers."""


class InvalidArgumentError(JumpCutError, ValueError):
    """Bad call-site input: missing paths, unknown mode or format."""


class FFmpegNotFoundError(JumpCutError, RuntimeError):
    pass


class ProcessingCancelled(JumpCutError):
    """The caller abandoned the call; the running ffmpeg child was killed."""


class EngineError(JumpCutError):
    """An ffmpeg/ffprobe invocation failed."""

    def __init__(self, message: str, cmd: list[str] | None = None,
                 returncode: int | None = None, stderr: str = ""):
        self.cmd = cmd or []
        self.returncode = returncode
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()[-500:]}"
        super().__init__(message)


class ProbeError(EngineError):
    pass


class DetectionError(EngineError):
    pass


class EngineExecutionError(EngineError):
    pass
