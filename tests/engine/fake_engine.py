"""A scripted UCI engine for tests.

It plays the moves it is given (one per ``go``), answers ``bestmove (none)``
once they run out, and can be told to misbehave in the ways real engines do.
Runs as a standalone script; it does not import fishbowl.
"""

from __future__ import annotations

import argparse
import sys
import time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--moves", default="", help="comma separated replies, one per go")
    parser.add_argument("--id-name", default="FakeFish 1.0")
    parser.add_argument("--info", action="store_true", help="emit info lines before bestmove")
    parser.add_argument("--delay-ms", type=int, default=0, help="pause before answering go")
    parser.add_argument("--hang-on-go", action="store_true", help="only answer go after stop")
    parser.add_argument("--ignore-stop", action="store_true", help="never answer stop")
    parser.add_argument("--exit-on-go", action="store_true", help="exit when told to search")
    parser.add_argument("--fatal-on-go", action="store_true", help="report an error on go")
    parser.add_argument("--exit-on-start", action="store_true", help="exit before the handshake")
    parser.add_argument("--no-uciok", action="store_true", help="never finish the handshake")
    parser.add_argument("--readyok-delay-ms", type=int, default=0, help="pause before readyok")
    parser.add_argument("--garbled-info", action="store_true", help="emit undecodable bytes on go")
    parser.add_argument("--log", default=None, help="append every received line to this file")
    return parser


def say(text: str) -> None:
    print(text, flush=True)


def say_raw(data: bytes) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def main() -> int:
    args = build_parser().parse_args()
    if args.exit_on_start:
        return 2

    replies = [m for m in args.moves.split(",") if m]
    searches = 0
    hanging: str | None = None
    log = open(args.log, "a", encoding="utf-8") if args.log else None

    try:
        for raw in sys.stdin:
            line = raw.strip()
            if log is not None:
                log.write(line + "\n")
                log.flush()
            if not line:
                continue
            command = line.split()[0]

            if command == "uci":
                say(f"id name {args.id_name}")
                say("id author fishbowl tests")
                say("option name Skill Level type spin default 20 min 0 max 20")
                say("option name UCI_LimitStrength type check default false")
                say("option name UCI_Elo type spin default 1320 min 1320 max 3190")
                if not args.no_uciok:
                    say("uciok")
            elif command == "isready":
                if args.readyok_delay_ms:
                    time.sleep(args.readyok_delay_ms / 1000)
                say("readyok")
            elif command == "go":
                move = replies[searches] if searches < len(replies) else "(none)"
                searches += 1
                if args.exit_on_go:
                    return 3
                if args.fatal_on_go:
                    say("info string ERROR: network file not found")
                    continue
                if args.hang_on_go:
                    hanging = move
                    continue
                if args.delay_ms:
                    time.sleep(args.delay_ms / 1000)
                if args.garbled_info:
                    say_raw(b"info string caf\xe9 \xff\xfe garbage\n")
                if args.info:
                    say("info depth 1 score cp 13 nodes 20 pv " + move)
                    say(f"info depth 2 seldepth 3 score cp 31 nodes 400 nps 40000 time 10 pv {move}")
                say(f"bestmove {move}")
            elif command == "stop":
                if hanging is not None and not args.ignore_stop:
                    say(f"bestmove {hanging}")
                    hanging = None
            elif command == "quit":
                return 0
    finally:
        if log is not None:
            log.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
