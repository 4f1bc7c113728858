from __future__ import annotations

import asyncio
import codecs
import subprocess
import threading
from dataclasses import dataclass, field
from typing import IO, Iterable, Optional, Sequence

from tailmesh.config import DEFAULT_OUTPUT_LIMIT_BYTES
from tailmesh.errors import BinaryNotFoundError, ExecutionFailedError, InvalidOutputError
from tailmesh.logger import get_logger

_logger = get_logger("services.process")
_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str
    truncated: bool = False

    @property
    def exit_success(self) -> bool:
        return self.exit_code == 0


@dataclass
class _BoundedCapture:
    limit: int
    data: bytearray = field(default_factory=bytearray)
    truncated: bool = False

    def drain(self, stream: IO[bytes]) -> None:
        # keeps at most `limit` bytes; the rest is read and discarded so the child never blocks
        with stream:
            for chunk in iter(lambda: stream.read(_CHUNK_BYTES), b""):
                room = self.limit - len(self.data)
                if room > 0:
                    self.data += chunk[:room]
                if len(chunk) > room:
                    self.truncated = True


def _start_reader(capture: _BoundedCapture, stream: IO[bytes]) -> threading.Thread:
    reader = threading.Thread(target=capture.drain, args=(stream,), daemon=True)
    reader.start()
    return reader


def run_command(
    program: str,
    args: Iterable[str],
    *,
    output_limit_bytes: int = DEFAULT_OUTPUT_LIMIT_BYTES,
    timeout_seconds: Optional[float] = None,
) -> CommandResult:
    cmd: Sequence[str] = [program, *args]
    try:
        proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except FileNotFoundError as exc:
        raise BinaryNotFoundError(program, str(exc)) from exc
    except OSError as exc:
        raise ExecutionFailedError(str(exc)) from exc

    stdout_capture = _BoundedCapture(output_limit_bytes)
    stderr_capture = _BoundedCapture(output_limit_bytes)
    readers = [
        _start_reader(stdout_capture, proc.stdout),
        _start_reader(stderr_capture, proc.stderr),
    ]
    try:
        exit_code = proc.wait(timeout=timeout_seconds)
    except subprocess.TimeoutExpired as exc:
        proc.kill()
        proc.wait()
        raise ExecutionFailedError(f"timed out after {timeout_seconds}s") from exc
    finally:
        for reader in readers:
            reader.join()

    stdout_raw, stdout_clipped = bytes(stdout_capture.data), stdout_capture.truncated
    stderr_raw, stderr_clipped = bytes(stderr_capture.data), stderr_capture.truncated
    truncated = stdout_clipped or stderr_clipped
    if truncated:
        _logger.warning(
            "tailscale.output.truncated",
            "Command output exceeded capture limit",
            args=" ".join(cmd[1:]),
            limit_bytes=output_limit_bytes,
            stdout_truncated=stdout_clipped,
            stderr_truncated=stderr_clipped,
        )

    try:
        # a clipped capture may end inside a multi-byte sequence; only that tail is dropped
        stdout = codecs.getincrementaldecoder("utf-8")().decode(
            stdout_raw, final=not stdout_clipped
        )
    except UnicodeDecodeError as exc:
        raise InvalidOutputError(f"stdout is not valid UTF-8: {exc}") from exc
    stderr = stderr_raw.decode("utf-8", errors="replace")

    return CommandResult(
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        truncated=truncated,
    )


async def run_command_async(
    program: str,
    args: Iterable[str],
    *,
    output_limit_bytes: int = DEFAULT_OUTPUT_LIMIT_BYTES,
    timeout_seconds: Optional[float] = None,
) -> CommandResult:
    return await asyncio.to_thread(
        run_command,
        program,
        tuple(args),
        output_limit_bytes=output_limit_bytes,
        timeout_seconds=timeout_seconds,
    )
