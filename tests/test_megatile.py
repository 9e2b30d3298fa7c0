import unittest

from edgematch.core.exceptions import ConfigurationError
from edgematch.core.models import MegaTile, OrientedTile, Tile
from edgematch.data.catalog import TileCatalog
from edgematch.engine.megatile import BuilderConfig, MegaTileBuilder, hint_fits_unpaired
from edgematch.engine.schedule import PERMISSIVE_SCHEDULE, StepSchedule
from edgematch.engine.validator import verify_megatiles


X = 7

# Two mega-tiles with conjugate borders. The second one's top-left tile reads
# top=1 and left=2, which the first one's unpaired (0, 1) and (2, 3) seed.
PAIRED_TILES = (
    (0, X, X, 6),
    (1, 2, X, X),
    (X, X, 4, 2),
    (X, 3, 5, X),
    (1, X, X, 2),
    (0, 3, X, X),
    (X, X, 5, 6),
    (X, 2, 4, X),
)


def paired_catalog() -> TileCatalog:
    return TileCatalog([Tile(tile_id, *sides) for tile_id, sides in enumerate(PAIRED_TILES)])


def uniform_catalog(count: int = 8) -> TileCatalog:
    """Interior tiles that all read (0, 1, 1, 0)."""
    return TileCatalog([Tile(tile_id, 0, 1, 1, 0) for tile_id in range(count)])


def permissive_config(**overrides) -> BuilderConfig:
    options = dict(
        target_count=2,
        starter=None,
        interior_skip=0,
        unpaired_schedule=PERMISSIVE_SCHEDULE,
        diversity_schedule=PERMISSIVE_SCHEDULE,
        seed=11,
    )
    options.update(overrides)
    return BuilderConfig(**options)


def flat_megatile(catalog: TileCatalog, first_id: int) -> MegaTile:
    # Every outer border reads (0, 0); all internal seams carry label 1.
    return MegaTile(
        top_left=catalog.oriented(first_id, 0),
        top_right=catalog.oriented(first_id + 1, 1),
        bottom_left=catalog.oriented(first_id + 2, 3),
        bottom_right=catalog.oriented(first_id + 3, 2),
    )


class HintFitTests(unittest.TestCase):
    def test_needs_two_distinct_pairs(self) -> None:
        tile = OrientedTile(Tile(0, 2, 9, 9, 3))
        self.assertTrue(hint_fits_unpaired(tile, [(0, 2), (3, 1)]))
        self.assertFalse(hint_fits_unpaired(tile, [(3, 2)]))
        self.assertFalse(hint_fits_unpaired(tile, []))


class MegaTileBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = paired_catalog()

    def test_builds_complete_partition(self) -> None:
        result = MegaTileBuilder(permissive_config(), self.catalog).build()
        self.assertTrue(result.success)
        self.assertEqual(result.reason, "target_reached")
        self.assertEqual(len(result.megatiles), 2)
        verify_megatiles(result.megatiles, range(8))
        self.assertEqual(result.best_partial, result.megatiles)

    def test_same_seed_same_result(self) -> None:
        first = MegaTileBuilder(permissive_config(seed=5), self.catalog).build()
        second = MegaTileBuilder(permissive_config(seed=5), self.catalog).build()
        self.assertEqual(first.megatiles, second.megatiles)

    def test_node_budget(self) -> None:
        result = MegaTileBuilder(permissive_config(max_nodes=0), self.catalog).build()
        self.assertFalse(result.success)
        self.assertEqual(result.reason, "node_limit")
        self.assertEqual(result.megatiles, [])

    def test_seeds_without_starter_are_every_orientation(self) -> None:
        builder = MegaTileBuilder(permissive_config(), self.catalog)
        self.assertEqual(len(builder.seeds(builder.new_state())), 32)

    def test_seeds_pair_up_unpaired_borders(self) -> None:
        builder = MegaTileBuilder(permissive_config(), self.catalog)
        state = builder.new_state()
        first = MegaTile(*(self.catalog.oriented(tile_id, 0) for tile_id in range(4)))
        state.commit(first)
        self.assertEqual(state.unpaired_pairs, {(0, 1), (2, 3), (4, 5), (6, 2)})
        seeds = builder.seeds(state)
        self.assertIn(self.catalog.oriented(4, 0), seeds)
        self.assertEqual(len(seeds), len(set(seeds)))
        self.assertTrue(all(state.is_available(tile.id) for tile in seeds))

    def test_starter_is_the_only_first_seed_and_stays_pinned(self) -> None:
        builder = MegaTileBuilder(permissive_config(starter=(0, 0)), self.catalog)
        state = builder.new_state()
        self.assertEqual(builder.seeds(state), [self.catalog.oriented(0, 0)])
        self.assertFalse(state.is_available(0))
        result = builder.build()
        self.assertTrue(result.success)
        self.assertEqual(result.megatiles[0].top_left, self.catalog.oriented(0, 0))

    def test_candidates_are_internally_consistent(self) -> None:
        builder = MegaTileBuilder(permissive_config(), self.catalog)
        state = builder.new_state()
        candidates = list(builder.candidates(state, [self.catalog.oriented(0, 0)]))
        self.assertTrue(candidates)
        for megatile in candidates:
            self.assertEqual(megatile.internal_mismatches(), [])
            self.assertEqual(len(set(megatile.tile_ids)), 4)

    def test_health_check_applies_schedules(self) -> None:
        strict = permissive_config(unpaired_schedule=StepSchedule.constant(3))
        builder = MegaTileBuilder(strict, self.catalog)
        state = builder.new_state()
        self.assertTrue(builder.is_healthy(state))
        state.commit(MegaTile(*(self.catalog.oriented(tile_id, 0) for tile_id in range(4))))
        self.assertFalse(builder.is_healthy(state))

    def test_health_check_limits_pair_diversity(self) -> None:
        strict = permissive_config(diversity_schedule=StepSchedule.constant(3))
        builder = MegaTileBuilder(strict, self.catalog)
        state = builder.new_state()
        self.assertTrue(builder.is_healthy(state))
        state.commit(MegaTile(*(self.catalog.oriented(tile_id, 0) for tile_id in range(4))))
        self.assertEqual(state.distinct_pair_types, 4)
        self.assertFalse(builder.is_healthy(state))

    def test_health_check_keeps_rim_supply(self) -> None:
        # One edge tile holds three X sides back for the rim.
        catalog = TileCatalog(list(self.catalog) + [Tile(8, -1, X, X, X)])
        builder = MegaTileBuilder(permissive_config(), catalog)
        self.assertEqual(builder.rim_reserved[X], 3)
        self.assertEqual(builder.total_supply[X], 19)
        state = builder.new_state()
        state.commit(MegaTile(*(catalog.oriented(tile_id, 0) for tile_id in range(4))))
        self.assertTrue(builder.is_healthy(state))
        state.edge_usage_count[X] = 16
        self.assertTrue(builder.is_healthy(state))
        state.edge_usage_count[X] = 17
        self.assertFalse(builder.is_healthy(state))

    def test_hint_is_seeded_when_unpaired_borders_fit(self) -> None:
        builder = MegaTileBuilder(permissive_config(hinted=True, hints=((4, 0, 1),)), self.catalog)
        state = builder.new_state()
        self.assertFalse(state.is_available(4))
        state.commit(MegaTile(*(self.catalog.oriented(tile_id, 0) for tile_id in range(4))))
        self.assertEqual(builder.seeds(state), [self.catalog.oriented(4, 0)])

    def test_hint_that_does_not_fit_yields_no_seeds(self) -> None:
        builder = MegaTileBuilder(permissive_config(hinted=True, hints=((4, 1, 1),)), self.catalog)
        state = builder.new_state()
        state.commit(MegaTile(*(self.catalog.oriented(tile_id, 0) for tile_id in range(4))))
        self.assertEqual(builder.seeds(state), [])

    def test_hint_is_placed_at_its_commit_count(self) -> None:
        config = permissive_config(hinted=True, hints=((4, 0, 1),))
        result = MegaTileBuilder(config, self.catalog).build()
        self.assertTrue(result.success)
        self.assertEqual(result.megatiles[1].top_left, self.catalog.oriented(4, 0))
        verify_megatiles(result.megatiles, range(8))

    def test_hint_due_at_or_after_target_is_rejected(self) -> None:
        for commit_count in (2, 3):
            with self.subTest(commit_count=commit_count):
                config = permissive_config(hinted=True, hints=((4, 0, commit_count),))
                with self.assertRaises(ConfigurationError):
                    MegaTileBuilder(config, self.catalog)

    def test_configuration_errors(self) -> None:
        with self.assertRaises(ConfigurationError):
            MegaTileBuilder(permissive_config(target_count=3), self.catalog)
        with self.assertRaises(ConfigurationError):
            MegaTileBuilder(permissive_config(starter=(0, 0), interior_skip=1), self.catalog)
        with self.assertRaises(ConfigurationError):
            MegaTileBuilder(permissive_config(starter=(99, 0)), self.catalog)


class ScoringTests(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = uniform_catalog()

    def test_warmup_scores_are_random(self) -> None:
        builder = MegaTileBuilder(permissive_config(), self.catalog)
        state = builder.new_state()
        value = builder.score(flat_megatile(self.catalog, 0), state, builder.usage_scores(state))
        self.assertTrue(1 <= value <= 999)

    def test_score_rewards_palindromes_and_label_budget(self) -> None:
        builder = MegaTileBuilder(permissive_config(random_warmup=0), self.catalog)
        state = builder.new_state()
        self.assertEqual(builder.usage_scores(state), [16, 16])
        megatile = flat_megatile(self.catalog, 0)
        self.assertEqual(megatile.borders, ((0, 0),) * 4)
        # 4 palindromes plus 16+15+...+9 for each of the two labels.
        self.assertEqual(builder.score(megatile, state, builder.usage_scores(state)), 600)

    def test_repeated_answer_to_one_pair_is_penalised(self) -> None:
        builder = MegaTileBuilder(permissive_config(random_warmup=0), self.catalog)
        state = builder.new_state()
        state.commit(flat_megatile(self.catalog, 0))
        self.assertEqual(state.paired_pairs, {(0, 0)})
        value = builder.score(flat_megatile(self.catalog, 4), state, builder.usage_scores(state))
        self.assertLess(value, 0)
        ranked = builder.ranked_candidates(state, [self.catalog.oriented(4, 0)])
        self.assertNotIn(flat_megatile(self.catalog, 4), ranked)


class BundledBuilderTests(unittest.TestCase):
    def test_bundled_defaults_pin_starter_and_hints(self) -> None:
        catalog = TileCatalog.load()
        with self.assertRaises(ConfigurationError):
            MegaTileBuilder(BuilderConfig(hinted=True, seed=1), catalog)
        builder = MegaTileBuilder(BuilderConfig(target_count=49, hinted=True, seed=1), catalog)
        self.assertEqual(len(builder.eligible_ids), 196)
        self.assertEqual(builder.pinned, frozenset({138, 207, 254, 180, 248}))
        self.assertEqual(sorted(builder.hints), [45, 46, 47, 48])
        self.assertEqual(sum(builder.hint_reserved), 8)
        self.assertEqual(builder.total_supply[:5], [0] * 5)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
