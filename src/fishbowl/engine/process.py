"""Child-process handle with line-based send/receive over stdio pipes."""

from __future__ import annotations

import logging
import os
import queue
import subprocess
import threading
from collections.abc import Sequence
from types import TracebackType
from typing import IO

from fishbowl.engine.errors import PipeClosedError, ProcessExitedError, ProcessSpawnError

_LOGGER = logging.getLogger(__name__)

# Queued by the reader thread once stdout hits end-of-stream.
_EOF = object()


class EngineProcess:
    """Owns one engine process and its pipes.

    A daemon thread copies stdout lines into a queue so that
    :meth:`receive_line` can wait with a timeout. Only one thread should
    call :meth:`send_line`/:meth:`receive_line`; in the application that is
    the engine actor's worker.
    """

    __slots__ = ("_proc", "_lines", "_reader", "_eof", "_closed", "_lock", "command")

    def __init__(self, proc: subprocess.Popen[str], command: Sequence[str]) -> None:
        self._proc = proc
        self.command = tuple(command)
        self._lines: queue.Queue[object] = queue.Queue()
        self._eof = False
        self._closed = False
        self._lock = threading.Lock()
        self._reader = threading.Thread(
            target=self._pump_stdout,
            args=(proc.stdout,),
            name=f"engine-stdout-{proc.pid}",
            daemon=True,
        )
        self._reader.start()

    @classmethod
    def spawn(cls, command: str | Sequence[str], cwd: str | None = None) -> EngineProcess:
        """Start *command* (a binary path, or argv list).

        The working directory defaults to the binary's own directory, where
        engines tend to look for their network files.
        """
        argv = [command] if isinstance(command, str) else list(command)
        if not argv:
            raise ProcessSpawnError("Empty engine command")
        if cwd is None:
            cwd = os.path.dirname(os.path.abspath(argv[0])) or None
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                # Undecodable bytes arrive as U+FFFD rather than ending the stream.
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                cwd=cwd,
            )
        except OSError as exc:
            raise ProcessSpawnError(f"Cannot start engine {argv[0]!r}: {exc}") from exc
        _LOGGER.info("Started engine %s (pid %d)", argv[0], proc.pid)
        return cls(proc, argv)

    # -- Properties ---------------------------------------------------------

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def is_running(self) -> bool:
        return not self._closed and self._proc.poll() is None

    @property
    def returncode(self) -> int | None:
        return self._proc.poll()

    # -- I/O ----------------------------------------------------------------

    def send_line(self, text: str) -> None:
        """Write *text* plus a newline and flush."""
        stdin = self._proc.stdin
        if self._closed or stdin is None or stdin.closed:
            raise PipeClosedError("Engine input pipe is closed")
        try:
            stdin.write(text + "\n")
            stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            raise PipeClosedError(f"Engine input pipe is closed: {exc}") from exc
        _LOGGER.debug(">> %s", text)

    def receive_line(self, timeout: float | None = None) -> str | None:
        """Next output line without its newline.

        Blocks until one arrives, or for at most *timeout* seconds, after
        which ``None`` is returned. Raises :class:`ProcessExitedError` once
        the output channel has closed, and on every call after that.
        """
        if self._eof:
            raise ProcessExitedError(self._exit_message())
        try:
            item = self._lines.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _EOF:
            self._eof = True
            raise ProcessExitedError(self._exit_message())
        assert isinstance(item, str)
        _LOGGER.debug("<< %s", item)
        return item

    # -- Shutdown -----------------------------------------------------------

    def terminate(self, timeout: float = 2.0) -> None:
        """Stop the process and release its pipes. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        proc = self._proc
        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except OSError:
                pass
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                _LOGGER.warning("Engine pid %d ignored terminate; killing it", proc.pid)
                proc.kill()
                proc.wait()
        # The reader sees EOF once the process is gone.
        self._reader.join(timeout)
        if proc.stdout is not None and not self._reader.is_alive():
            proc.stdout.close()
        _LOGGER.info("Engine pid %d stopped (exit code %s)", proc.pid, proc.returncode)

    def wait(self, timeout: float | None = None) -> int | None:
        """Wait for the process to exit on its own; ``None`` on timeout."""
        try:
            return self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def __enter__(self) -> EngineProcess:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.terminate()

    # -- Internal -----------------------------------------------------------

    def _pump_stdout(self, stdout: IO[str] | None) -> None:
        if stdout is not None:
            try:
                for line in stdout:
                    self._lines.put(line.rstrip("\r\n"))
            except (OSError, ValueError):
                # Pipe closed underneath us during terminate().
                pass
        self._lines.put(_EOF)

    def _exit_message(self) -> str:
        code = self._proc.poll()
        if code is None:
            return "Engine closed its output"
        return f"Engine process exited with code {code}"
