from __future__ import annotations

import io
import logging
import os
import queue
import signal
import subprocess
import threading
from typing import IO, Callable, Iterator

from rocker.adapters.errors import LaunchError, StreamReadError
from rocker.adapters.runner.sinks import StreamSink
from rocker.domain.command import Command
from rocker.domain.process import (
    DEFAULT_ECHO_PREFIX,
    DEFAULT_EXECUTABLE,
    MergePolicy,
    ProcessResult,
)
from rocker.ports.process_runner import OutputSink

logger = logging.getLogger(__name__)

_EOF = object()
_POSIX = os.name == "posix"


def _read_lines(stream: IO[str]) -> Iterator[str]:
    try:
        for line in stream:
            yield line.rstrip()
    except (OSError, ValueError) as e:
        raise StreamReadError("Failed reading process output", cause=e) from e


def _pump(stream: IO[str], channel: queue.Queue[object]) -> None:
    try:
        for line in _read_lines(stream):
            channel.put(line)
    except StreamReadError as e:
        channel.put(e)
    finally:
        channel.put(_EOF)


def _hold(stream: IO[str], held: list[str], failures: list[StreamReadError]) -> None:
    try:
        for line in _read_lines(stream):
            held.append(line)
    except StreamReadError as e:
        failures.append(e)


def _text(stream: IO[bytes] | None) -> IO[str]:
    # Split on "\n" only; a bare "\r" (progress output) stays inside its line.
    return io.TextIOWrapper(stream, encoding="utf-8", errors="replace", newline="\n")  # pyright: ignore[reportArgumentType]


def _terminate(process: subprocess.Popen[bytes]) -> None:
    """Kill the child and everything it spawned into its process group.

    Helpers the tool starts inherit the output pipes, so killing only the
    direct child would leave the readers waiting on them.
    """
    if _POSIX:
        try:
            os.killpg(process.pid, signal.SIGKILL)
            logger.debug("Killed process group %s", process.pid)
        except ProcessLookupError:
            pass
    elif process.poll() is None:
        logger.debug("Killing pid %s", process.pid)
        process.kill()


def _release(process: subprocess.Popen[bytes], streams: tuple[IO[str], ...]) -> None:
    if process.poll() is None:
        process.kill()
    for stream in streams:
        stream.close()
    process.wait()


class SubprocessRunner:
    """Runs one container tool invocation per call and captures its output.

    Both output pipes are merged into a single line-ordered capture. Every
    line is echoed to ``sink`` as soon as it is read, prefixed with
    ``echo_prefix``. With ``MergePolicy.INTERLEAVED`` lines appear in the
    order they arrive from either pipe; with ``MergePolicy.SEQUENTIAL`` all
    stdout lines come first and stderr lines follow once stdout closes.

    The tool runs in its own session so that, on an error, it can be killed
    together with any helpers it started.
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        sink: OutputSink | None = None,
        merge_policy: MergePolicy | str = MergePolicy.INTERLEAVED,
        echo_prefix: str = DEFAULT_ECHO_PREFIX,
    ) -> None:
        self.executable = executable
        self.sink: OutputSink = sink if sink is not None else StreamSink()
        self.merge_policy = MergePolicy(merge_policy)
        self.echo_prefix = echo_prefix

    def run(self, command: Command) -> ProcessResult:
        argv = [self.executable, *command.args]
        self.sink(f"Running command: {' '.join(argv)}")
        process = self._launch(argv)
        streams = self._open_streams(process)
        lines: list[str] = []

        def emit(line: str) -> None:
            lines.append(line)
            self.sink(f"{self.echo_prefix}{line}")

        try:
            if self.merge_policy is MergePolicy.SEQUENTIAL:
                self._drain_sequential(process, streams, emit)
            else:
                self._drain_interleaved(process, streams, emit)
            returncode = process.wait()
        finally:
            _release(process, streams)
        logger.debug("pid %s exited with returncode %s", process.pid, returncode)
        return ProcessResult.from_lines(lines, returncode)

    def _launch(self, argv: list[str]) -> subprocess.Popen[bytes]:
        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise LaunchError(
                f"Could not launch {self.executable}: {e.strerror or e}",
                details={"executable": self.executable, "args": argv[1:]},
                hint=f"Check that {self.executable} is installed and on PATH",
                cause=e,
            ) from e
        logger.debug("Started pid %s: %s", process.pid, argv)
        return process

    def _open_streams(self, process: subprocess.Popen[bytes]) -> tuple[IO[str], IO[str]]:
        return _text(process.stdout), _text(process.stderr)

    def _drain_interleaved(
        self,
        process: subprocess.Popen[bytes],
        streams: tuple[IO[str], IO[str]],
        emit: Callable[[str], None],
    ) -> None:
        channel: queue.Queue[object] = queue.Queue()
        readers = [
            threading.Thread(target=_pump, args=(stream, channel), daemon=True)
            for stream in streams
        ]
        for reader in readers:
            reader.start()
        open_streams = len(readers)
        try:
            while open_streams:
                item = channel.get()
                if item is _EOF:
                    open_streams -= 1
                elif isinstance(item, StreamReadError):
                    raise item
                else:
                    emit(str(item))
        finally:
            # Killing the group closes every writer end so readers can finish.
            if open_streams:
                _terminate(process)
            for reader in readers:
                reader.join()

    def _drain_sequential(
        self,
        process: subprocess.Popen[bytes],
        streams: tuple[IO[str], IO[str]],
        emit: Callable[[str], None],
    ) -> None:
        stdout, stderr = streams
        held: list[str] = []
        failures: list[StreamReadError] = []
        # stderr still has to be drained while stdout is read, or a child that
        # fills the stderr pipe blocks forever.
        reader = threading.Thread(target=_hold, args=(stderr, held, failures), daemon=True)
        reader.start()
        finished = False
        try:
            for line in _read_lines(stdout):
                emit(line)
            finished = True
        finally:
            if not finished:
                _terminate(process)
            reader.join()
        if failures:
            _terminate(process)
            raise failures[0]
        for line in held:
            emit(line)
