"""Tests for FEN, SAN and long algebraic move text."""

import pytest

from fishbowl.core.enums import CastlingRights, Color, MoveFlag, PieceType
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.notation import (
    STARTING_FEN,
    is_uci_move_text,
    move_to_san,
    parse_san,
    parse_uci_move,
    position_from_fen,
    position_to_fen,
)
from fishbowl.core.piece import Piece
from fishbowl.core.types import E1, E2, E4, G1, parse_square


def _legal(fen: str) -> list[Move]:
    return MoveGenerator(position_from_fen(fen)).generate_legal_moves()


class TestFenParsing:
    def test_starting_position(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert pos.side_to_move == Color.WHITE
        assert pos.castling == CastlingRights.ALL
        assert pos.en_passant is None
        assert (pos.halfmove_clock, pos.fullmove_number) == (0, 1)
        assert pos.board[E1] == Piece(Color.WHITE, PieceType.KING)

    def test_clocks_optional(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/4K3 b -")
        assert pos.side_to_move == Color.BLACK
        assert (pos.halfmove_clock, pos.fullmove_number) == (0, 1)

    def test_en_passant_field_optional(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/4K3 w -")
        assert pos.en_passant is None
        assert position_to_fen(pos) == "4k3/8/8/8/8/8/8/4K3 w - - 0 1"

    def test_pinned_en_passant_dropped(self) -> None:
        # The e4 pawn is pinned to its king along the fourth rank.
        pos = position_from_fen("8/8/8/8/k2Pp2R/8/8/4K3 b - d3 0 1")
        assert pos.en_passant is None

    def test_capturable_en_passant_kept(self) -> None:
        fen = "rnbqkbnr/pppp1ppp/8/3Pp3/8/8/PPP1PPPP/RNBQKBNR w KQkq e6 0 3"
        pos = position_from_fen(fen)
        assert pos.en_passant == parse_square("e6")
        assert position_to_fen(pos) == fen

    def test_uncapturable_en_passant_dropped(self) -> None:
        pos = position_from_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1")
        assert pos.en_passant is None

    @pytest.mark.parametrize(
        "fen",
        [
            "",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
            "rnbqkbnr/pppppppp/9/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNRR w KQkq - 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KKkq - 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e4 0 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - -1 1",
            "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 zero",
        ],
    )
    def test_malformed_rejected(self, fen: str) -> None:
        with pytest.raises(ValueError):
            position_from_fen(fen)


class TestFenSerialization:
    @pytest.mark.parametrize(
        "fen",
        [
            STARTING_FEN,
            "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
            "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
            "4k3/8/8/8/8/8/8/4K3 b - - 57 112",
        ],
    )
    def test_known_positions(self, fen: str) -> None:
        assert position_to_fen(position_from_fen(fen)) == fen

    def test_after_move(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        pos.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        assert position_to_fen(pos) == (
            "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
        )


class TestSan:
    def _san(self, fen: str, uci: str) -> str:
        pos = position_from_fen(fen)
        move = parse_uci_move(uci, MoveGenerator(pos).generate_legal_moves())
        return move_to_san(pos, move)

    def test_simple_moves(self) -> None:
        assert self._san(STARTING_FEN, "e2e4") == "e4"
        assert self._san(STARTING_FEN, "g1f3") == "Nf3"

    def test_castling(self) -> None:
        fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
        assert self._san(fen, "e1g1") == "O-O"
        assert self._san(fen, "e1c1") == "O-O-O"

    def test_capture_and_check(self) -> None:
        fen = "4k3/8/8/3p4/4P3/8/8/4K2R w K - 0 1"
        assert self._san(fen, "e4d5") == "exd5"
        assert self._san(fen, "h1h8") == "Rh8+"

    def test_mate_suffix(self) -> None:
        fen = "rnbqkbnr/pppp1ppp/8/4p3/6P1/5P2/PPPPP2P/RNBQKBNR b KQkq - 0 2"
        assert self._san(fen, "d8h4") == "Qh4#"

    def test_promotion(self) -> None:
        assert self._san("8/4P3/8/8/8/8/k7/4K3 w - - 0 1", "e7e8q") == "e8=Q"

    def test_file_disambiguation(self) -> None:
        fen = "4k3/8/8/8/8/8/4K3/R6R w - - 0 1"
        assert self._san(fen, "a1d1") == "Rad1"

    def test_rank_disambiguation(self) -> None:
        fen = "4k3/8/8/R7/8/8/8/R3K3 w - - 0 1"
        assert self._san(fen, "a1a3") == "R1a3"

    def test_san_leaves_position_unchanged(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        move = Move(E2, E4, MoveFlag.DOUBLE_PAWN)
        move_to_san(pos, move)
        assert position_to_fen(pos) == STARTING_FEN


class TestParseSan:
    def test_pawn_and_piece(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert parse_san(pos, "e4").uci == "e2e4"
        assert parse_san(pos, "Nf3").uci == "g1f3"

    def test_castles_and_suffixes(self) -> None:
        pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        move = parse_san(pos, "O-O+")
        assert move.flag == MoveFlag.CASTLE_KINGSIDE
        assert move.to_sq == G1
        assert parse_san(pos, "0-0-0").flag == MoveFlag.CASTLE_QUEENSIDE

    def test_promotion(self) -> None:
        pos = position_from_fen("8/4P3/8/8/8/8/k7/4K3 w - - 0 1")
        assert parse_san(pos, "e8=N").promotion == PieceType.KNIGHT

    def test_ambiguous_rejected(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/4K3/R6R w - - 0 1")
        with pytest.raises(ValueError, match="Ambiguous"):
            parse_san(pos, "Rd1")
        assert parse_san(pos, "Rhf1").uci == "h1f1"

    @pytest.mark.parametrize("san", ["e5", "Ke3", "O-O", "e8=K", "z9", "Q"])
    def test_illegal_or_malformed(self, san: str) -> None:
        with pytest.raises(ValueError):
            parse_san(position_from_fen(STARTING_FEN), san)


class TestUciText:
    @pytest.mark.parametrize("text", ["e2e4", "a7a8q", "h2h1n", "b7c8r"])
    def test_valid(self, text: str) -> None:
        assert is_uci_move_text(text)

    @pytest.mark.parametrize("text", ["", "e2e", "e2e4k", "e2e4q", "i2i4", "E2E4", "e2e4 "])
    def test_invalid(self, text: str) -> None:
        assert not is_uci_move_text(text)

    def test_parse_resolves_flags(self) -> None:
        move = parse_uci_move("e2e4", _legal(STARTING_FEN))
        assert move.flag == MoveFlag.DOUBLE_PAWN

    def test_parse_normalizes_case(self) -> None:
        assert parse_uci_move(" G1F3 ", _legal(STARTING_FEN)).uci == "g1f3"

    def test_parse_rejects_illegal(self) -> None:
        with pytest.raises(ValueError, match="Illegal"):
            parse_uci_move("e2e5", _legal(STARTING_FEN))

    def test_promotion_requires_suffix(self) -> None:
        legal = _legal("8/4P3/8/8/8/8/k7/4K3 w - - 0 1")
        with pytest.raises(ValueError):
            parse_uci_move("e7e8", legal)
        assert parse_uci_move("e7e8r", legal).promotion == PieceType.ROOK
