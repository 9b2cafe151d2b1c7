"""Tests for Position make/unmake and Zobrist keys."""

from fishbowl.core.enums import CastlingRights, Color, MoveFlag, PieceType
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.notation import STARTING_FEN, position_from_fen, position_to_fen
from fishbowl.core.piece import Piece
from fishbowl.core.types import (
    A1, C1, D1, D5, D7, E1, E2, E4, E5, E7, E8, F1, G1, H1,
    parse_square,
)

CASTLE_FEN = "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1"


class TestMakeUnmake:
    def test_side_and_counters(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        pos.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        assert pos.side_to_move == Color.BLACK
        assert pos.halfmove_clock == 0
        assert pos.fullmove_number == 1
        pos.make_move(Move(D7, parse_square("d6")))
        assert pos.fullmove_number == 2

    def test_unmake_restores_everything(self) -> None:
        """After make+unmake of every legal move, FEN and key must match."""
        pos = position_from_fen(
            "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
        )
        fen_before = position_to_fen(pos)
        key_before = pos.zobrist_hash
        for move in MoveGenerator(pos).generate_legal_moves():
            pos.make_move(move)
            pos.unmake_move(move)
            assert position_to_fen(pos) == fen_before, f"Failed for {move}"
            assert pos.zobrist_hash == key_before, f"Key drift for {move}"

    def test_capture_restores_piece(self) -> None:
        pos = position_from_fen("rnbqkbnr/ppp1pppp/8/3p4/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2")
        fen_before = position_to_fen(pos)
        capture = Move(E4, D5)
        pos.make_move(capture)
        assert pos.board[D5] == Piece(Color.WHITE, PieceType.PAWN)
        pos.unmake_move(capture)
        assert position_to_fen(pos) == fen_before

    def test_copy_has_independent_board(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        clone = pos.copy()
        clone.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        assert pos.board[E2] is not None
        assert pos == position_from_fen(STARTING_FEN)


class TestEnPassantTarget:
    def test_not_recorded_without_adjacent_enemy_pawn(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        pos.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        assert pos.en_passant is None

    def test_recorded_when_capture_is_possible(self) -> None:
        pos = position_from_fen("rnbqkbnr/ppp1pppp/8/8/3p4/8/PPPPPPPP/RNBQKBNR w KQkq - 0 3")
        pos.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        assert pos.en_passant == parse_square("e3")

    def test_not_recorded_when_capturer_is_pinned(self) -> None:
        pos = position_from_fen("4k3/8/8/8/4p3/8/3P4/K3R3 w - - 0 1")
        board_before = pos.board.copy()
        pos.make_move(Move(parse_square("d2"), parse_square("d4"), MoveFlag.DOUBLE_PAWN))
        assert pos.en_passant is None
        assert pos.board[parse_square("e4")] == Piece(Color.BLACK, PieceType.PAWN)
        assert pos.zobrist_hash == position_from_fen(position_to_fen(pos)).zobrist_hash
        pos.unmake_move(Move(parse_square("d2"), parse_square("d4"), MoveFlag.DOUBLE_PAWN))
        assert pos.board == board_before

    def test_cleared_by_next_move(self) -> None:
        pos = position_from_fen("rnbqkbnr/ppp1pppp/8/8/3p4/8/PPPPPPPP/RNBQKBNR w KQkq - 0 3")
        pos.make_move(Move(E2, E4, MoveFlag.DOUBLE_PAWN))
        pos.make_move(Move(parse_square("g8"), parse_square("f6")))
        assert pos.en_passant is None

    def test_en_passant_capture_and_unmake(self) -> None:
        pos = position_from_fen("rnbqkbnr/pppp1ppp/8/3Pp3/8/8/PPP1PPPP/RNBQKBNR w KQkq e6 0 3")
        fen_before = position_to_fen(pos)
        ep = Move(D5, parse_square("e6"), MoveFlag.EN_PASSANT)
        pos.make_move(ep)
        assert pos.board[E5] is None
        assert pos.board[parse_square("e6")] == Piece(Color.WHITE, PieceType.PAWN)
        pos.unmake_move(ep)
        assert position_to_fen(pos) == fen_before


class TestCastlingRightsUpdate:
    def test_king_move_removes_rights(self) -> None:
        pos = position_from_fen(CASTLE_FEN)
        pos.make_move(Move(E1, F1))
        assert not pos.castling & CastlingRights.WHITE_BOTH
        assert pos.castling & CastlingRights.BLACK_BOTH == CastlingRights.BLACK_BOTH

    def test_rook_move_removes_one_right(self) -> None:
        pos = position_from_fen(CASTLE_FEN)
        pos.make_move(Move(A1, parse_square("b1")))
        assert not pos.castling & CastlingRights.WHITE_QUEENSIDE
        assert pos.castling & CastlingRights.WHITE_KINGSIDE

    def test_rook_capture_removes_victims_right(self) -> None:
        pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        pos.make_move(Move(H1, parse_square("h8")))
        assert not pos.castling & CastlingRights.BLACK_KINGSIDE
        assert not pos.castling & CastlingRights.WHITE_KINGSIDE

    def test_castling_moves_rook(self) -> None:
        pos = position_from_fen(CASTLE_FEN)
        pos.make_move(Move(E1, G1, MoveFlag.CASTLE_KINGSIDE))
        assert pos.board[G1] == Piece(Color.WHITE, PieceType.KING)
        assert pos.board[F1] == Piece(Color.WHITE, PieceType.ROOK)
        assert pos.board[H1] is None

    def test_queenside_castle_unmake(self) -> None:
        pos = position_from_fen(CASTLE_FEN)
        fen_before = position_to_fen(pos)
        move = Move(E1, C1, MoveFlag.CASTLE_QUEENSIDE)
        pos.make_move(move)
        assert pos.board[D1] == Piece(Color.WHITE, PieceType.ROOK)
        pos.unmake_move(move)
        assert position_to_fen(pos) == fen_before


class TestPromotion:
    def test_promote_and_unmake(self) -> None:
        pos = position_from_fen("8/4P3/8/8/8/8/4k3/K7 w - - 0 1")
        fen_before = position_to_fen(pos)
        move = Move(E7, E8, MoveFlag.PROMOTION, PieceType.KNIGHT)
        pos.make_move(move)
        assert pos.board[E8] == Piece(Color.WHITE, PieceType.KNIGHT)
        pos.unmake_move(move)
        assert position_to_fen(pos) == fen_before


class TestZobrist:
    def test_transposition_gives_same_key(self) -> None:
        a = position_from_fen(STARTING_FEN)
        b = position_from_fen(STARTING_FEN)
        g1, f3, b1, c3 = (parse_square(s) for s in ("g1", "f3", "b1", "c3"))
        g8, f6, b8, c6 = (parse_square(s) for s in ("g8", "f6", "b8", "c6"))
        for m in (Move(g1, f3), Move(g8, f6), Move(b1, c3), Move(b8, c6)):
            a.make_move(m)
        for m in (Move(b1, c3), Move(b8, c6), Move(g1, f3), Move(g8, f6)):
            b.make_move(m)
        assert a.zobrist_hash == b.zobrist_hash

    def test_incremental_matches_fresh(self) -> None:
        pos = position_from_fen(CASTLE_FEN)
        pos.make_move(Move(E1, G1, MoveFlag.CASTLE_KINGSIDE))
        pos.make_move(Move(parse_square("a7"), parse_square("a5"), MoveFlag.DOUBLE_PAWN))
        assert pos.zobrist_hash == position_from_fen(position_to_fen(pos)).zobrist_hash

    def test_side_to_move_changes_key(self) -> None:
        white = position_from_fen("4k3/8/8/8/8/8/8/4K3 w - - 0 1")
        black = position_from_fen("4k3/8/8/8/8/8/8/4K3 b - - 0 1")
        assert white.zobrist_hash != black.zobrist_hash
