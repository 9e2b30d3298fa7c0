import unittest

from edgematch.core.exceptions import InvariantViolationError
from edgematch.core.models import MegaTile, OrientedTile, Tile
from edgematch.engine.state import SearchState

A, B, C, D, X = 0, 1, 2, 3, 4


def megatile(first_id, tl, tr, bl, br) -> MegaTile:
    tiles = [OrientedTile(Tile(first_id + offset, *sides)) for offset, sides in enumerate((tl, tr, bl, br))]
    return MegaTile(*tiles)


# Borders (A,B) (B,C) (C,D) (D,A), joined internally on X.
FIRST = megatile(0, (A, X, X, D), (B, B, X, X), (X, X, C, A), (X, C, D, X))
# Borders are the conjugates of FIRST.
MIRROR = megatile(4, (B, X, X, A), (A, C, X, X), (X, X, D, D), (X, B, C, X))


class SearchStateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = SearchState(universe_size=8, alphabet_size=5, eligible_ids=range(8))

    def test_fixture_megatiles_are_consistent(self) -> None:
        self.assertEqual(FIRST.internal_mismatches(), [])
        self.assertEqual(MIRROR.internal_mismatches(), [])
        self.assertEqual(FIRST.borders, ((A, B), (B, C), (C, D), (D, A)))

    def test_single_megatile_leaves_all_borders_unpaired(self) -> None:
        self.state.commit(FIRST)
        self.assertEqual(self.state.unpaired_pairs, set(FIRST.borders))
        self.assertEqual(self.state.paired_pairs, set())
        self.assertEqual(self.state.edge_usage_count, [2, 2, 2, 2, 8])
        self.assertEqual(self.state.available[:4], [False] * 4)
        self.assertEqual(self.state.distinct_pair_types, 4)

    def test_conjugate_megatile_pairs_everything(self) -> None:
        self.state.commit(FIRST)
        self.state.commit(MIRROR)
        self.assertEqual(self.state.unpaired_pairs, set())
        self.assertEqual(self.state.paired_pairs, set(FIRST.borders) | set(MIRROR.borders))
        self.assertEqual(self.state.count, 2)

    def test_rollback_restores_every_tracker(self) -> None:
        initial = self.state.snapshot()
        self.state.commit(FIRST)
        after_first = self.state.snapshot()
        self.state.commit(MIRROR)
        self.state.rollback(MIRROR)
        self.assertEqual(self.state.snapshot(), after_first)
        self.state.rollback(FIRST)
        self.assertEqual(self.state.snapshot(), initial)
        self.assertEqual(dict(self.state.border_pair_count), {})

    def test_palindromes_pair_on_even_counts(self) -> None:
        flat = megatile(0, (X, X, X, X), (X, X, X, X), (X, X, X, X), (X, X, X, X))
        self.state.commit(flat)
        self.assertEqual(self.state.paired_pairs, {(X, X)})
        self.assertEqual(self.state.unpaired_pairs, set())

    def test_rollback_out_of_order_is_rejected(self) -> None:
        self.state.commit(FIRST)
        self.state.commit(MIRROR)
        with self.assertRaises(InvariantViolationError):
            self.state.rollback(FIRST)
        with self.assertRaises(InvariantViolationError):
            SearchState(8, 5, range(8)).rollback(FIRST)

    def test_commit_of_used_tile_is_rejected(self) -> None:
        self.state.commit(FIRST)
        before = self.state.snapshot()
        with self.assertRaises(InvariantViolationError):
            self.state.commit(FIRST)
        self.assertEqual(self.state.snapshot(), before)

    def test_pinned_tiles_stay_unavailable(self) -> None:
        state = SearchState(8, 5, range(8), pinned=[0])
        self.assertFalse(state.is_available(0))
        state.commit(FIRST)
        state.rollback(FIRST)
        self.assertFalse(state.is_available(0))
        self.assertTrue(all(state.is_available(tile_id) for tile_id in range(1, 8)))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
