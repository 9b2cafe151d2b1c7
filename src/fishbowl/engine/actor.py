"""Engine actor: a worker thread that owns the engine process.

Callers never touch the pipes. They post commands to the worker and learn
about results through futures and a notification queue that the UI thread
drains at its own pace::

    actor = EngineActor(settings)
    actor.initialize()
    request_id = actor.request_best_move(SetPosition(moves=("e2e4",)))
    ...
    reply = actor.poll_or_await(request_id)   # STILL_SEARCHING until done

Session states::

    UNINITIALIZED -> READY -> SEARCHING -> READY
                              SEARCHING -> CANCELLING -> READY
    any -> CLOSED (process exit, fatal error, timeout, shutdown)

At most one request is outstanding at any time. After :meth:`cancel` the
worker still waits for the engine's ``bestmove`` and throws it away before
the session accepts another search.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from collections import OrderedDict
from collections.abc import Sequence
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import TypeAlias

from fishbowl.engine.difficulty import DifficultyLevel
from fishbowl.engine.errors import (
    BusyError,
    EngineClosedError,
    EngineError,
    EngineFatalError,
    EngineInitError,
    EngineNotReadyError,
    EngineTimeoutError,
    PipeClosedError,
    ProcessExitedError,
    ProcessSpawnError,
    RequestCancelledError,
)
from fishbowl.engine.locate import find_engine_binary
from fishbowl.engine.process import EngineProcess
from fishbowl.engine.protocol import (
    BestMove,
    Command,
    EngineId,
    Event,
    FatalError,
    IsReady,
    OptionDescription,
    Quit,
    ReadyOk,
    SearchBudget,
    SearchInfo,
    SetOption,
    SetPosition,
    Stop,
    Uci,
    UciNewGame,
    UciOk,
    decode,
    encode,
)
from fishbowl.engine.settings import EngineSettings

_LOGGER = logging.getLogger(__name__)

# Completed request futures kept around for late poll_or_await() calls.
_MAX_TRACKED_REQUESTS = 64


class SessionState(IntEnum):
    UNINITIALIZED = 0
    READY = auto()
    SEARCHING = auto()
    CANCELLING = auto()
    CLOSED = auto()


class _StillSearching(Enum):
    STILL_SEARCHING = auto()

    def __repr__(self) -> str:
        return "STILL_SEARCHING"


STILL_SEARCHING = _StillSearching.STILL_SEARCHING


@dataclass(frozen=True, slots=True)
class EngineRequest:
    """One search, immutable once issued."""

    request_id: int
    position: SetPosition
    budget: SearchBudget


# -- Notifications ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EngineReady:
    engine_name: str | None = None


@dataclass(frozen=True, slots=True)
class SearchProgress:
    request_id: int
    info: SearchInfo


@dataclass(frozen=True, slots=True)
class BestMoveReply:
    """Terminal answer to a request; ``move`` is ``None`` if the engine had none."""

    request_id: int
    move: str | None
    ponder: str | None = None
    info: SearchInfo | None = None


@dataclass(frozen=True, slots=True)
class RequestDiscarded:
    """The engine's reply to a cancelled request arrived and was dropped."""

    request_id: int


@dataclass(frozen=True, slots=True)
class EngineFailed:
    error: EngineError


Notification: TypeAlias = (
    EngineReady | SearchProgress | BestMoveReply | RequestDiscarded | EngineFailed
)

# -- Worker commands ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Configure:
    difficulty: DifficultyLevel


@dataclass(frozen=True, slots=True)
class _NewGame:
    future: Future[None]


@dataclass(frozen=True, slots=True)
class _Search:
    request: EngineRequest


@dataclass(frozen=True, slots=True)
class _Cancel:
    request_id: int


@dataclass(frozen=True, slots=True)
class _Shutdown:
    pass


_WorkerCommand: TypeAlias = _Configure | _NewGame | _Search | _Cancel | _Shutdown


class EngineActor:
    """Runs one engine session on a dedicated worker thread.

    *command* is the argv used to start the engine; when omitted it is
    resolved from ``settings.engine_path`` and the usual install locations
    once :meth:`initialize` is called.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        command: str | Sequence[str] | None = None,
    ) -> None:
        self._settings = settings if settings is not None else EngineSettings()
        self._settings.validate()
        self._command = command

        self._lock = threading.Lock()
        self._state = SessionState.UNINITIALIZED
        self._difficulty = self._settings.difficulty
        self._ids = itertools.count(1)
        self._outstanding: EngineRequest | None = None
        self._last_info: SearchInfo | None = None
        self._futures: OrderedDict[int, Future[BestMoveReply]] = OrderedDict()
        self._init_future: Future[None] | None = None
        self._pending_new_games: list[Future[None]] = []
        self._failure: EngineError | None = None
        self._engine_name: str | None = None

        self._commands: queue.Queue[_WorkerCommand] = queue.Queue()
        self._notifications: queue.Queue[Notification] = queue.Queue()
        self._shutdown_event = threading.Event()
        self._thread: threading.Thread | None = None

        # Worker-only state.
        self._process: EngineProcess | None = None
        self._deadline: float | None = None
        self._pending_options: list[SetOption] = []

    # -- Introspection ----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def is_ready(self) -> bool:
        return self.state == SessionState.READY

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    @property
    def outstanding_request_id(self) -> int | None:
        with self._lock:
            return self._outstanding.request_id if self._outstanding else None

    @property
    def difficulty(self) -> DifficultyLevel:
        with self._lock:
            return self._difficulty

    @property
    def engine_name(self) -> str | None:
        return self._engine_name

    @property
    def failure(self) -> EngineError | None:
        """The error that closed the session, if it closed abnormally."""
        with self._lock:
            return self._failure

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    # -- Public API -------------------------------------------------------------

    def initialize(self) -> Future[None]:
        """Start the engine and run the UCI handshake on the worker.

        The returned future resolves once ``readyok`` has been seen, or fails
        with :class:`ProcessSpawnError`, :class:`EngineTimeoutError` or
        :class:`EngineInitError`. Repeated calls return the same future.
        """
        with self._lock:
            if self._init_future is not None:
                return self._init_future
            future: Future[None] = Future()
            self._init_future = future
            if self._state == SessionState.CLOSED:
                future.set_exception(self._closed_error())
                return future
            self._thread = threading.Thread(target=self._run, name="engine-actor", daemon=True)
            self._thread.start()
        return future

    def configure(self, difficulty: DifficultyLevel) -> None:
        """Switch strength. Fire-and-forget; no reply is expected."""
        with self._lock:
            self._difficulty = difficulty
            if self._state in (SessionState.UNINITIALIZED, SessionState.CLOSED):
                return
        self._commands.put(_Configure(difficulty))

    def new_game(self) -> Future[None]:
        """Send ``ucinewgame`` and wait (on the worker) for ``readyok``."""
        future: Future[None] = Future()
        with self._lock:
            self._check_accepting()
            if self._state == SessionState.SEARCHING:
                raise BusyError("Cancel the running search before starting a new game")
            self._pending_new_games.append(future)
        self._commands.put(_NewGame(future))
        return future

    def request_best_move(
        self, position: SetPosition, budget: SearchBudget | None = None
    ) -> int:
        """Queue a search for *position* and return its request id at once.

        Raises :class:`EngineClosedError`, :class:`EngineNotReadyError` or
        :class:`BusyError` without blocking.
        """
        if budget is None:
            budget = self._settings.search_budget()
        with self._lock:
            self._check_accepting()
            if self._state != SessionState.READY:
                raise BusyError(f"Engine is {self._state.name.lower()}; cancel first")
            request = EngineRequest(next(self._ids), position, budget)
            self._outstanding = request
            self._last_info = None
            self._state = SessionState.SEARCHING
            self._track(request.request_id, Future())
        _LOGGER.debug("Request %d queued: %s", request.request_id, position.to_line())
        self._commands.put(_Search(request))
        return request.request_id

    def poll_or_await(
        self, request_id: int, timeout: float | None = 0.0
    ) -> BestMoveReply | _StillSearching:
        """Reply for *request_id*, or :data:`STILL_SEARCHING`.

        Non-blocking with the default timeout; ``timeout=None`` waits for
        completion. Raises whatever ended the request, or
        :class:`RequestCancelledError` if it was cancelled.
        """
        with self._lock:
            future = self._futures.get(request_id)
        if future is None:
            raise KeyError(request_id)
        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            return STILL_SEARCHING
        except CancelledError:
            raise RequestCancelledError(f"Request {request_id} was cancelled") from None

    def cancel(self, request_id: int) -> bool:
        """Abandon *request_id* if it is the running search.

        Returns immediately; the engine's eventual reply is drained by the
        worker, which then emits :class:`RequestDiscarded`.
        """
        with self._lock:
            request = self._outstanding
            if (
                self._state != SessionState.SEARCHING
                or request is None
                or request.request_id != request_id
            ):
                return False
            self._state = SessionState.CANCELLING
            self._futures[request_id].cancel()
        _LOGGER.debug("Request %d cancelled", request_id)
        self._commands.put(_Cancel(request_id))
        return True

    def drain_notifications(self) -> list[Notification]:
        """Everything the worker reported since the last call, in order."""
        items: list[Notification] = []
        while True:
            try:
                items.append(self._notifications.get_nowait())
            except queue.Empty:
                return items

    def shutdown(self, timeout: float = 5.0) -> None:
        """Quit the engine and stop the worker. Safe from any state and thread."""
        if self._shutdown_event.is_set():
            self._join(timeout)
            return
        self._shutdown_event.set()
        with self._lock:
            started = self._thread is not None
        if started:
            self._commands.put(_Shutdown())
            self._join(timeout)
        else:
            self._close(None)

    def __enter__(self) -> EngineActor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -- Caller-side helpers ----------------------------------------------------

    def _check_accepting(self) -> None:
        # Caller holds self._lock.
        if self._state == SessionState.CLOSED:
            raise self._closed_error()
        if self._state == SessionState.UNINITIALIZED:
            raise EngineNotReadyError("Engine has not finished initializing")

    def _closed_error(self) -> EngineClosedError:
        reason = f": {self._failure}" if self._failure is not None else ""
        return EngineClosedError(f"Engine session is closed{reason}")

    def _track(self, request_id: int, future: Future[BestMoveReply]) -> None:
        self._futures[request_id] = future
        while len(self._futures) > _MAX_TRACKED_REQUESTS:
            oldest_id, oldest = next(iter(self._futures.items()))
            if not oldest.done():
                break
            del self._futures[oldest_id]

    def _join(self, timeout: float) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                _LOGGER.warning("Engine worker did not stop within %.1fs", timeout)

    def _notify(self, notification: Notification) -> None:
        self._notifications.put(notification)

    # -- Worker -------------------------------------------------------------------

    def _run(self) -> None:
        try:
            self._handshake()
            while self._serve_commands():
                self._read_once()
                self._check_deadline()
        except EngineError as exc:
            self._close(None if self._shutdown_event.is_set() else exc)
        except Exception as exc:
            _LOGGER.exception("Engine worker crashed")
            self._close(EngineFatalError(f"Engine worker crashed: {exc}"))
        finally:
            if self._state != SessionState.CLOSED:
                self._close(None)

    def _handshake(self) -> None:
        init_future = self._init_future
        assert init_future is not None
        deadline = time.monotonic() + self._settings.init_timeout_s
        try:
            self._process = EngineProcess.spawn(self._resolve_command())
            self._send(Uci())
            self._await(UciOk, deadline)
            sent = self.difficulty
            self._send_options(sent.engine_options())
            self._send(IsReady())
            self._await(ReadyOk, deadline)
        except (ProcessSpawnError, EngineTimeoutError, EngineClosedError) as exc:
            init_future.set_exception(exc)
            raise
        except (ProcessExitedError, PipeClosedError, EngineFatalError) as exc:
            error = EngineInitError(f"Engine handshake failed: {exc}")
            init_future.set_exception(error)
            raise error from exc

        with self._lock:
            self._state = SessionState.READY
            latest = self._difficulty
        if latest != sent:
            # configure() arrived after the handshake options went out.
            self._send_options(latest.engine_options())
        _LOGGER.info("Engine ready: %s", self._engine_name or "unnamed engine")
        init_future.set_result(None)
        self._notify(EngineReady(self._engine_name))

    def _resolve_command(self) -> list[str]:
        if self._command is None:
            binary = find_engine_binary(explicit=self._settings.engine_path)
            return [binary, *self._settings.engine_args]
        if isinstance(self._command, str):
            return [self._command]
        return list(self._command)

    def _serve_commands(self) -> bool:
        """Handle every queued command; ``False`` once the session should end."""
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return True
            if isinstance(command, _Shutdown):
                self._quit()
                return False
            if isinstance(command, _Search):
                self._start_search(command.request)
            elif isinstance(command, _Cancel):
                self._stop_search(command.request_id)
            elif isinstance(command, _Configure):
                self._apply_difficulty(command.difficulty)
            elif isinstance(command, _NewGame):
                self._reset_game(command.future)

    def _start_search(self, request: EngineRequest) -> None:
        with self._lock:
            if self._outstanding is not request:
                return
            if self._state == SessionState.CANCELLING:
                # Cancelled before it reached the engine: nothing to drain.
                self._finish_request()
                self._notify(RequestDiscarded(request.request_id))
                return
        self._send(request.position)
        self._send(request.budget.command())
        ceiling = self._settings.search_ceiling_s(request.budget)
        self._deadline = time.monotonic() + ceiling if ceiling is not None else None

    def _stop_search(self, request_id: int) -> None:
        with self._lock:
            outstanding = self._outstanding
            if outstanding is None or outstanding.request_id != request_id:
                return
        self._send(Stop())
        self._deadline = time.monotonic() + self._settings.stop_grace_s

    def _apply_difficulty(self, difficulty: DifficultyLevel) -> None:
        options = difficulty.engine_options()
        if self.state == SessionState.READY:
            self._send_options(options)
        else:
            # Options are sent once the running search has finished.
            self._pending_options = list(options)

    def _reset_game(self, future: Future[None]) -> None:
        try:
            self._send(UciNewGame())
            self._send(IsReady())
            self._await(ReadyOk, time.monotonic() + self._settings.init_timeout_s)
        except EngineError as exc:
            with self._lock:
                if future in self._pending_new_games:
                    self._pending_new_games.remove(future)
            future.set_exception(exc)
            raise
        with self._lock:
            if future in self._pending_new_games:
                self._pending_new_games.remove(future)
        future.set_result(None)

    def _quit(self) -> None:
        if self._process is None:
            return
        try:
            self._send(Quit())
        except PipeClosedError:
            pass
        if self._process.wait(timeout=self._settings.stop_grace_s) is None:
            _LOGGER.debug("Engine did not quit on request")

    def _read_once(self) -> None:
        assert self._process is not None
        line = self._process.receive_line(timeout=self._settings.poll_interval_s)
        if line is not None:
            self._dispatch(decode(line))

    def _await(self, event_type: type[Event], deadline: float) -> Event:
        """Read until an event of *event_type*, dispatching everything else."""
        assert self._process is not None
        while True:
            if self._shutdown_event.is_set():
                raise EngineClosedError("Engine shut down while waiting for a reply")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise EngineTimeoutError(
                    f"Engine did not answer with {event_type.__name__} in time"
                )
            line = self._process.receive_line(
                timeout=min(remaining, self._settings.poll_interval_s * 5)
            )
            if line is None:
                continue
            event = decode(line)
            if isinstance(event, event_type):
                return event
            self._dispatch(event)

    def _dispatch(self, event: Event | None) -> None:
        if event is None:
            return
        if isinstance(event, SearchInfo):
            self._on_info(event)
        elif isinstance(event, BestMove):
            self._on_best_move(event)
        elif isinstance(event, FatalError):
            raise EngineFatalError(event.message)
        elif isinstance(event, EngineId):
            if event.key == "name":
                self._engine_name = event.value
        elif isinstance(event, OptionDescription):
            _LOGGER.debug("Engine option: %s", event.name)
        elif isinstance(event, (UciOk, ReadyOk)):
            _LOGGER.debug("Unexpected %s", type(event).__name__)
        else:
            _LOGGER.debug("Unrecognized engine output: %s", event.line)

    def _on_info(self, info: SearchInfo) -> None:
        with self._lock:
            request = self._outstanding
            if request is None or self._state != SessionState.SEARCHING:
                return
            if info.string is not None and not info.has_score:
                return
            self._last_info = info
        self._notify(SearchProgress(request.request_id, info))

    def _on_best_move(self, event: BestMove) -> None:
        with self._lock:
            request = self._outstanding
            state = self._state
            if request is None or state not in (SessionState.SEARCHING, SessionState.CANCELLING):
                _LOGGER.warning("Ignoring stray bestmove %s", event.move)
                return
            future = self._futures[request.request_id]
            if state == SessionState.SEARCHING:
                reply = BestMoveReply(request.request_id, event.move, event.ponder, self._last_info)
                if not future.done():
                    future.set_result(reply)
                notification: Notification = reply
            else:
                _LOGGER.debug("Discarding bestmove %s for request %d", event.move, request.request_id)
                notification = RequestDiscarded(request.request_id)
            self._finish_request()
        self._notify(notification)
        if self._pending_options:
            options, self._pending_options = self._pending_options, []
            self._send_options(options)

    def _finish_request(self) -> None:
        # Caller holds self._lock.
        self._outstanding = None
        self._last_info = None
        self._state = SessionState.READY
        self._deadline = None

    def _check_deadline(self) -> None:
        if self._deadline is None or time.monotonic() < self._deadline:
            return
        if self.state == SessionState.CANCELLING:
            raise EngineTimeoutError("Engine did not answer stop within the grace period")
        raise EngineTimeoutError("Engine search exceeded its time limit")

    def _send(self, command: Command) -> None:
        assert self._process is not None
        self._process.send_line(encode(command))

    def _send_options(self, options: Sequence[SetOption]) -> None:
        for option in options:
            self._send(option)

    def _close(self, error: EngineError | None) -> None:
        """Move to CLOSED, fail whatever is pending and release the process."""
        with self._lock:
            if self._state == SessionState.CLOSED:
                already_closed = True
            else:
                already_closed = False
                self._state = SessionState.CLOSED
                self._failure = error
                pending_error = error if error is not None else EngineClosedError("Engine shut down")
                if self._outstanding is not None:
                    future = self._futures[self._outstanding.request_id]
                    if not future.done():
                        future.set_exception(pending_error)
                    self._outstanding = None
                if self._init_future is not None and not self._init_future.done():
                    self._init_future.set_exception(pending_error)
                for new_game in self._pending_new_games:
                    if not new_game.done():
                        new_game.set_exception(pending_error)
                self._pending_new_games.clear()
        if not already_closed:
            if error is not None:
                _LOGGER.error("Engine session closed: %s", error)
                self._notify(EngineFailed(error))
            else:
                _LOGGER.info("Engine session closed")
        if self._process is not None:
            self._process.terminate(timeout=self._settings.stop_grace_s)
