"""UCI protocol codec.

Outbound commands are frozen dataclasses that validate themselves on
construction, so :func:`encode` cannot fail.  Inbound lines are turned into
event objects by :func:`decode`, which never raises: anything it does not
understand becomes :class:`Unrecognized`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

from fishbowl.core.notation.uci import is_uci_move_text

# -- Outbound commands ------------------------------------------------------


def _check_single_line(value: str, what: str) -> None:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{what} must fit on one line: {value!r}")


@dataclass(frozen=True, slots=True)
class Uci:
    """Handshake init; the engine answers with ``id``/``option`` lines and ``uciok``."""

    def to_line(self) -> str:
        return "uci"


@dataclass(frozen=True, slots=True)
class IsReady:
    def to_line(self) -> str:
        return "isready"


@dataclass(frozen=True, slots=True)
class UciNewGame:
    def to_line(self) -> str:
        return "ucinewgame"


@dataclass(frozen=True, slots=True)
class SetOption:
    """``setoption name <name> [value <value>]``; booleans go out as true/false."""

    name: str
    value: str | int | bool | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Option name must not be empty")
        _check_single_line(self.name, "Option name")
        if " value " in f" {self.name} ":
            raise ValueError(f"Option name must not contain 'value': {self.name!r}")
        if isinstance(self.value, str):
            _check_single_line(self.value, "Option value")

    def to_line(self) -> str:
        if self.value is None:
            return f"setoption name {self.name}"
        if isinstance(self.value, bool):
            value = "true" if self.value else "false"
        else:
            value = str(self.value)
        return f"setoption name {self.name} value {value}"


@dataclass(frozen=True, slots=True)
class SetPosition:
    """``position startpos|fen <FEN> [moves ...]``.

    ``fen=None`` means the standard starting position.
    """

    fen: str | None = None
    moves: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.fen is not None:
            if not self.fen.strip():
                raise ValueError("FEN must not be empty")
            _check_single_line(self.fen, "FEN")
        for move in self.moves:
            if not is_uci_move_text(move):
                raise ValueError(f"Malformed move text: {move!r}")

    def to_line(self) -> str:
        line = "position startpos" if self.fen is None else f"position fen {self.fen.strip()}"
        if self.moves:
            line += " moves " + " ".join(self.moves)
        return line


@dataclass(frozen=True, slots=True)
class Go:
    """``go movetime <ms>`` or ``go depth <n>``; exactly one budget is set."""

    movetime_ms: int | None = None
    depth: int | None = None

    def __post_init__(self) -> None:
        budgets = [b for b in (self.movetime_ms, self.depth) if b is not None]
        if len(budgets) != 1:
            raise ValueError("Go needs exactly one of movetime_ms or depth")
        if budgets[0] <= 0:
            raise ValueError(f"Search budget must be positive: {budgets[0]}")

    def to_line(self) -> str:
        if self.movetime_ms is not None:
            return f"go movetime {self.movetime_ms}"
        return f"go depth {self.depth}"


@dataclass(frozen=True, slots=True)
class Stop:
    def to_line(self) -> str:
        return "stop"


@dataclass(frozen=True, slots=True)
class Quit:
    def to_line(self) -> str:
        return "quit"


Command: TypeAlias = Uci | IsReady | UciNewGame | SetOption | SetPosition | Go | Stop | Quit


def encode(command: Command) -> str:
    """Render *command* as one protocol line (without the newline)."""
    return command.to_line()


@dataclass(frozen=True, slots=True)
class SearchBudget:
    """How long the engine may think: a fixed move time or a fixed depth."""

    movetime_ms: int | None = None
    depth: int | None = None

    def __post_init__(self) -> None:
        # Validation is shared with the wire command.
        self.command()

    @classmethod
    def movetime(cls, ms: int) -> SearchBudget:
        return cls(movetime_ms=ms)

    @classmethod
    def fixed_depth(cls, depth: int) -> SearchBudget:
        return cls(depth=depth)

    def command(self) -> Go:
        return Go(movetime_ms=self.movetime_ms, depth=self.depth)


# -- Inbound events ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UciOk:
    pass


@dataclass(frozen=True, slots=True)
class ReadyOk:
    pass


@dataclass(frozen=True, slots=True)
class EngineId:
    key: str
    value: str


@dataclass(frozen=True, slots=True)
class OptionDescription:
    """An ``option`` line; kept raw since the session never interprets it."""

    name: str
    raw: str


@dataclass(frozen=True, slots=True)
class SearchInfo:
    """One ``info`` line. Fields the engine omitted (or garbled) are ``None``."""

    depth: int | None = None
    seldepth: int | None = None
    score_cp: int | None = None
    score_mate: int | None = None
    nodes: int | None = None
    nps: int | None = None
    time_ms: int | None = None
    multipv: int | None = None
    pv: tuple[str, ...] = field(default_factory=tuple)
    string: str | None = None

    @property
    def has_score(self) -> bool:
        return self.score_cp is not None or self.score_mate is not None


@dataclass(frozen=True, slots=True)
class BestMove:
    """``bestmove``; ``move`` is ``None`` when the engine had nothing to play."""

    move: str | None
    ponder: str | None = None


@dataclass(frozen=True, slots=True)
class FatalError:
    message: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    line: str


Event: TypeAlias = (
    UciOk
    | ReadyOk
    | EngineId
    | OptionDescription
    | SearchInfo
    | BestMove
    | FatalError
    | Unrecognized
)

_NULL_MOVES = frozenset({"(none)", "0000", "none"})

# info keyword -> SearchInfo field, for the plain integer fields.
_INFO_INT_FIELDS: dict[str, str] = {
    "depth": "depth",
    "seldepth": "seldepth",
    "nodes": "nodes",
    "nps": "nps",
    "time": "time_ms",
    "multipv": "multipv",
}
# Keywords whose single argument we skip.
_INFO_SKIPPED = frozenset({"hashfull", "tbhits", "cpuload", "currmove", "currmovenumber", "sbhits"})


def decode(line: str) -> Event | None:
    """Parse one line from the engine. Blank lines yield ``None``."""
    text = line.strip()
    if not text:
        return None
    tokens = text.split()
    keyword = tokens[0]

    if keyword == "uciok":
        return UciOk()
    if keyword == "readyok":
        return ReadyOk()
    if keyword == "bestmove":
        return _decode_bestmove(tokens, text)
    if keyword == "info":
        return _decode_info(tokens, text)
    if keyword == "id" and len(tokens) >= 3:
        return EngineId(tokens[1], " ".join(tokens[2:]))
    if keyword == "option":
        return _decode_option(tokens, text)
    if _is_error_token(keyword):
        return FatalError(text)
    return Unrecognized(text)


def _is_error_token(token: str) -> bool:
    """``error`` or ``ERROR:``, but not words that merely start with it."""
    return token.rstrip(":").lower() == "error"


def _decode_bestmove(tokens: list[str], text: str) -> Event:
    if len(tokens) < 2:
        return Unrecognized(text)
    move: str | None = tokens[1]
    if move in _NULL_MOVES:
        move = None
    elif not is_uci_move_text(move):
        return Unrecognized(text)

    ponder = None
    if len(tokens) >= 4 and tokens[2] == "ponder" and is_uci_move_text(tokens[3]):
        ponder = tokens[3]
    return BestMove(move, ponder)


def _decode_option(tokens: list[str], text: str) -> Event:
    if len(tokens) < 3 or tokens[1] != "name":
        return Unrecognized(text)
    name_parts: list[str] = []
    for token in tokens[2:]:
        if token == "type":
            break
        name_parts.append(token)
    if not name_parts:
        return Unrecognized(text)
    return OptionDescription(" ".join(name_parts), text)


def _to_int(token: str | None) -> int | None:
    if token is None:
        return None
    try:
        return int(token)
    except ValueError:
        return None


def _decode_info(tokens: list[str], text: str) -> Event:
    if len(tokens) >= 2 and tokens[1] == "string":
        message = text.split("string", 1)[1].strip()
        if message and _is_error_token(message.split(maxsplit=1)[0]):
            return FatalError(message)
        return SearchInfo(string=message)

    values: dict[str, object] = {}
    i = 1
    while i < len(tokens):
        token = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if token in _INFO_INT_FIELDS:
            values[_INFO_INT_FIELDS[token]] = _to_int(nxt)
            i += 2
        elif token == "score":
            kind = nxt
            amount = _to_int(tokens[i + 2]) if i + 2 < len(tokens) else None
            if kind == "cp":
                values["score_cp"] = amount
            elif kind == "mate":
                values["score_mate"] = amount
            i += 3
            while i < len(tokens) and tokens[i] in ("lowerbound", "upperbound"):
                i += 1
        elif token == "pv":
            pv = []
            i += 1
            while i < len(tokens) and is_uci_move_text(tokens[i]):
                pv.append(tokens[i])
                i += 1
            values["pv"] = tuple(pv)
        elif token == "string":
            values["string"] = " ".join(tokens[i + 1 :])
            break
        elif token in _INFO_SKIPPED:
            i += 2
        else:
            i += 1
    return SearchInfo(**values)  # type: ignore[arg-type]
