import unittest

from edgematch.engine.schedule import (
    DIVERSITY_SCHEDULE,
    PERMISSIVE_SCHEDULE,
    UNPAIRED_SCHEDULE,
    StepSchedule,
)


class StepScheduleTests(unittest.TestCase):
    def test_unpaired_ceilings(self) -> None:
        expected = {0: 6, 3: 6, 4: 7, 15: 8, 16: 9, 31: 10, 39: 14, 44: 15, 45: 16, 47: 19, 49: 22}
        for count, ceiling in expected.items():
            with self.subTest(count=count):
                self.assertEqual(UNPAIRED_SCHEDULE(count), ceiling)
        self.assertEqual(UNPAIRED_SCHEDULE(50), 30)

    def test_diversity_ceilings_grow_every_two_commits(self) -> None:
        expected = {0: 9, 3: 9, 4: 12, 5: 14, 6: 14, 7: 17, 8: 17, 40: 49, 41: 54, 48: 73}
        for count, ceiling in expected.items():
            with self.subTest(count=count):
                self.assertEqual(DIVERSITY_SCHEDULE(count), ceiling)
        self.assertEqual(DIVERSITY_SCHEDULE(60), 30)

    def test_from_points_merges_equal_runs(self) -> None:
        schedule = StepSchedule.from_points([(2, 7), (0, 5), (1, 5)], default=1)
        self.assertEqual(schedule.steps, ((0, 1, 5), (2, 2, 7)))
        self.assertEqual(schedule(3), 1)

    def test_constant(self) -> None:
        self.assertEqual(PERMISSIVE_SCHEDULE(0), PERMISSIVE_SCHEDULE(1000))
        self.assertEqual(StepSchedule.constant(3)(42), 3)

    def test_overlapping_steps_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            StepSchedule(steps=((0, 4, 1), (4, 6, 2)), default=0)
        with self.assertRaises(ValueError):
            StepSchedule(steps=((3, 2, 1),), default=0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
