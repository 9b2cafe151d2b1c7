"""Console front end: play against the engine in a terminal."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Callable, Iterable

from fishbowl.core.enums import Color
from fishbowl.core.notation import parse_san
from fishbowl.core.rules import GameOutcome
from fishbowl.engine.actor import EngineActor
from fishbowl.engine.difficulty import DifficultyLevel
from fishbowl.engine.errors import EngineError
from fishbowl.engine.locate import find_engine_binary
from fishbowl.engine.protocol import SearchInfo
from fishbowl.engine.settings import EngineSettings
from fishbowl.game.controller import GameController
from fishbowl.game.interfaces import GamePhase
from fishbowl.game.state import GameState, MoveRecord

_LOGGER = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  <move>          play a move in UCI (e2e4, e7e8q) or SAN (e4, Nf3, O-O)
  new [white|black]  start a new game playing the given color
  flip            swap sides with the engine
  level <name>    set engine strength ({levels})
  resign          resign the current game
  board           show the board
  moves           list legal moves
  quit            leave
""".format(levels=", ".join(level.value for level in DifficultyLevel))


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fishbowl",
        description="Play chess against a UCI engine such as Stockfish",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--engine", help="Path to the engine binary")
    parser.add_argument(
        "--level",
        choices=[level.value for level in DifficultyLevel],
        default=DifficultyLevel.default().value,
        help="Engine strength",
    )
    parser.add_argument("--movetime", type=int, default=1000, help="Engine think time (ms)")
    parser.add_argument(
        "--color", choices=["white", "black"], default="white", help="Your color"
    )
    parser.add_argument("--fen", help="Start from this position instead")
    parser.add_argument("--no-engine", action="store_true", help="Local two-player mode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


class ConsoleGame:
    """Text loop around a :class:`GameController`."""

    def __init__(
        self,
        controller: GameController,
        output: Callable[[str], None] = print,
        poll_interval_s: float = 0.02,
    ) -> None:
        self._ctrl = controller
        self._out = output
        self._poll_interval_s = poll_interval_s
        self._running = True
        events = controller.events
        events.on_move.append(self._on_move)
        events.on_game_over.append(self._on_game_over)
        events.on_engine_failed.append(self._on_engine_failed)
        events.on_engine_info.append(self._on_engine_info)

    @property
    def running(self) -> bool:
        return self._running

    def run(self, lines: Iterable[str]) -> None:
        self.show_board()
        for line in lines:
            self.handle(line)
            self.wait_for_engine()
            if not self._running:
                break

    def handle(self, line: str) -> None:
        """Execute one command line."""
        words = line.split()
        if not words:
            return
        command, args = words[0].lower(), words[1:]
        ctrl = self._ctrl

        if command in ("quit", "exit"):
            self._running = False
        elif command == "help":
            self._out(HELP_TEXT)
        elif command == "board":
            self.show_board()
        elif command == "moves":
            self._out(" ".join(m.uci for m in ctrl.state.legal_moves()) or "(none)")
        elif command == "new":
            color = Color.BLACK if args[:1] == ["black"] else Color.WHITE
            ctrl.new_game(human_color=color)
            self.show_board()
        elif command == "flip":
            ctrl.flip_sides()
            self._out(f"You now play {ctrl.human_color}")
        elif command == "level":
            self._set_level(args)
        elif command == "resign":
            if not ctrl.resign():
                self._out("Nothing to resign")
        else:
            self._play(words[0])

    def wait_for_engine(self) -> None:
        """Block until the engine has answered (a console may block)."""
        while self._ctrl.phase == GamePhase.THINKING and not self._ctrl.is_local_only:
            self._ctrl.pump()
            time.sleep(self._poll_interval_s)

    def show_board(self) -> None:
        state = self._ctrl.state
        self._out(repr(state.position.board))
        if not state.is_over:
            check = " (check)" if state.is_check else ""
            self._out(f"{str(state.side_to_move).capitalize()} to move{check}")

    def _play(self, text: str) -> None:
        ctrl = self._ctrl
        if ctrl.submit_uci(text):
            return
        try:
            move = parse_san(ctrl.state.position.copy(), text, ctrl.state.legal_moves())
        except ValueError:
            self._out(f"Illegal or unknown move: {text}")
            return
        if not ctrl.submit_move(move):
            self._out("It is not your turn")

    def _set_level(self, args: list[str]) -> None:
        try:
            level = DifficultyLevel(args[0].lower())
        except (IndexError, ValueError):
            self._out(HELP_TEXT)
            return
        self._ctrl.set_difficulty(level)
        self._out(f"Engine level: {level.label}")

    # ── Controller callbacks ─────────────────────────────────────────────

    def _on_move(self, record: MoveRecord, state: GameState) -> None:
        number = (state.ply_count + 1) // 2
        dots = "." if state.side_to_move == Color.BLACK else "..."
        self._out(f"{number}{dots} {record.san}")
        self.show_board()

    def _on_game_over(self, outcome: GameOutcome) -> None:
        self._out(f"{outcome.description} ({outcome.game_result.score})")

    def _on_engine_failed(self, error: EngineError) -> None:
        self._out(f"Engine error: {error}\nContinuing without the engine.")

    def _on_engine_info(self, info: SearchInfo) -> None:
        _LOGGER.debug("depth %s score cp=%s mate=%s", info.depth, info.score_cp, info.score_mate)


def _start_engine(settings: EngineSettings) -> EngineActor | None:
    try:
        binary = find_engine_binary(explicit=settings.engine_path)
    except EngineError as exc:
        print(exc, file=sys.stderr)
        return None
    actor = EngineActor(settings, command=binary)
    try:
        actor.initialize().result(timeout=settings.init_timeout_s + 1)
    except (EngineError, TimeoutError) as exc:
        print(f"Engine failed to start: {exc}", file=sys.stderr)
        actor.shutdown()
        return None
    return actor


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    settings = EngineSettings(
        engine_path=args.engine,
        difficulty=DifficultyLevel(args.level),
        movetime_ms=args.movetime,
    )
    try:
        settings.validate()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2

    actor = None if args.no_engine else _start_engine(settings)
    if actor is None and not args.no_engine:
        print("Playing without an engine (local two-player mode).", file=sys.stderr)

    controller = GameController(actor, settings)
    console = ConsoleGame(controller, poll_interval_s=settings.poll_interval_s)
    try:
        controller.new_game(
            human_color=Color.BLACK if args.color == "black" else Color.WHITE,
            fen=args.fen,
        )
    except ValueError as exc:
        print(f"Bad FEN: {exc}", file=sys.stderr)
        controller.shutdown()
        return 2

    try:
        console.wait_for_engine()
        console.run(_input_lines())
    except KeyboardInterrupt:
        pass
    finally:
        controller.shutdown()
    return 0


def _input_lines() -> Iterable[str]:
    while True:
        try:
            yield input("> ")
        except EOFError:
            return


if __name__ == "__main__":
    sys.exit(main())
