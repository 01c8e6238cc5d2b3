import contextlib
import io
import unittest

from pfasst import config
from pfasst.controller import Controller, LevelIter, RangeIter
from pfasst.interfaces import ISweeper, ITransfer


class CountingSweeper(ISweeper):
    def __init__(self, name, setup_log=None):
        super(CountingSweeper, self).__init__()
        self.name = name
        self.setup_log = setup_log if setup_log is not None else []
        self.options_set = False

    def set_options(self):
        self.options_set = True

    def setup(self, coarse=False):
        self.setup_log.append((self.name, coarse, self.get_controller()))

    def predict(self, initial):
        pass

    def sweep(self):
        pass

    def advance(self):
        pass


class SpecialSweeper(CountingSweeper):
    pass


class NullTransfer(ITransfer):
    def interpolate(self, dst, src, interp_initial=False):
        pass

    def restrict(self, dst, src, restrict_initial=False):
        pass

    def fas(self, dt, dst, src):
        pass


class TestRangeIter(unittest.TestCase):
    def test_bounds(self):
        counter = RangeIter()
        counter.set_size(3)
        counter.reset(0)

        for expected in range(3):
            self.assertTrue(counter.valid(), "counter should be valid at {}".format(expected))
            self.assertEqual(counter.i, expected)
            counter.next()

        self.assertFalse(counter.valid(), "counter is exhausted after 3 next() calls")

    def test_reset_to_offset(self):
        counter = RangeIter(5)
        counter.reset(4)
        self.assertTrue(counter.valid())
        counter.next()
        self.assertFalse(counter.valid())

    def test_python_iteration(self):
        counter = RangeIter(4)
        self.assertEqual(list(counter), [0, 1, 2, 3])
        self.assertFalse(counter.valid())


class TestControllerTime(unittest.TestCase):
    def setUp(self):
        self.controller = Controller()
        self.controller.set_duration(0.0, 10.0, 0.25, 5)

    def test_initial_state(self):
        controller = self.controller
        self.assertEqual(controller.get_step(), 0)
        self.assertEqual(controller.get_iteration(), 0)
        self.assertEqual(controller.get_time(), 0.0)
        self.assertEqual(controller.get_time_step(), 0.25)
        self.assertEqual(controller.get_end_time(), 10.0)
        self.assertEqual(controller.get_max_iterations(), 5)
        self.assertEqual(controller.steps.n, 40, "40 steps of 0.25 between 0 and 10")

    def test_set_step(self):
        for dt in [0.1, 0.25, 1.0 / 3.0, 2.0]:
            for n1, n2 in [(0, 1), (2, 7), (3, 40)]:
                controller = Controller()
                controller.set_duration(0.0, 100.0, dt, 3)
                controller.set_step(n1)
                self.assertAlmostEqual(controller.get_time(), n1 * dt)
                controller.set_step(n2)
                self.assertEqual(controller.get_step(), n2)
                self.assertAlmostEqual(controller.get_time(), n1 * dt + (n2 - n1) * dt)
                self.assertAlmostEqual(controller.get_time(), n2 * dt)

    def test_set_step_is_monotonic(self):
        self.controller.set_step(4)
        with self.assertRaises(AssertionError):
            self.controller.set_step(3)

    def test_advance_time(self):
        controller = self.controller
        controller.set_step(3)
        step, time = controller.get_step(), controller.get_time()

        controller.advance_time(4)

        self.assertEqual(controller.get_step(), step + 4)
        self.assertAlmostEqual(controller.get_time(), time + 4 * 0.25)

        controller.advance_time()
        self.assertEqual(controller.get_step(), step + 5)

    def test_iteration_resets_each_step(self):
        controller = self.controller
        controller.advance_iteration()
        controller.advance_iteration()
        self.assertEqual(controller.get_iteration(), 2)

        controller.advance_time()
        self.assertEqual(controller.get_iteration(), 0, "iteration restarts with a new step")

        controller.set_iteration(3)
        self.assertEqual(controller.get_iteration(), 3)
        controller.set_step(5)
        self.assertEqual(controller.get_iteration(), 0)

    def test_start_time_offset(self):
        controller = Controller()
        controller.set_duration(1.5, 2.5, 0.5, 2)
        self.assertEqual(controller.get_time(), 1.5)
        self.assertEqual(controller.get_start_time(), 1.5)
        self.assertEqual(controller.steps.n, 2)
        controller.advance_time(2)
        self.assertAlmostEqual(controller.get_time(), 2.5)

    def test_set_duration_resets_counters(self):
        controller = self.controller
        controller.set_step(7)
        controller.advance_iteration()

        controller.set_duration(0.0, 1.0, 0.5, 2)

        self.assertEqual(controller.get_step(), 0)
        self.assertEqual(controller.get_iteration(), 0)
        self.assertEqual(controller.get_time(), 0.0)


class TestControllerHierarchy(unittest.TestCase):
    def build(self, size):
        controller = Controller()
        sweepers = [CountingSweeper("level {}".format(index)) for index in range(size)]
        transfers = [None] + [NullTransfer() for _ in range(size - 1)]
        for sweeper, transfer in zip(sweepers, transfers):
            controller.add_level(sweeper, transfer, coarse=False)
        return controller, sweepers, transfers

    def test_add_level_at_both_ends(self):
        controller = Controller()
        middle, fine, coarse = CountingSweeper("middle"), CountingSweeper("fine"), CountingSweeper("coarse")
        fine_transfer, middle_transfer = NullTransfer(), NullTransfer()

        controller.add_level(middle, middle_transfer)
        controller.add_level(fine, fine_transfer, coarse=False)
        controller.add_level(coarse, None, coarse=True)

        self.assertEqual(controller.nlevels(), 3)
        self.assertIs(controller.get_coarsest(), coarse)
        self.assertIs(controller.get_level(1), middle)
        self.assertIs(controller.get_finest(), fine)
        self.assertIs(controller.get_transfer(1), middle_transfer)
        self.assertIs(controller.get_transfer(2), fine_transfer)
        controller.setup()

    def test_finest_level_needs_transfer(self):
        controller = Controller()
        controller.add_level(CountingSweeper("first"), None, coarse=False)

        with self.assertRaises(AssertionError):
            controller.add_level(CountingSweeper("second"), None, coarse=False)
        self.assertEqual(controller.nlevels(), 1, "rejected level is not inserted")

    def test_get_level_returns_inserted_object(self):
        controller, sweepers, transfers = self.build(4)
        for index, sweeper in enumerate(sweepers):
            self.assertIs(controller.get_level(index), sweeper)
            self.assertIs(controller.get_level(index, CountingSweeper), sweeper)
        for index in range(1, 4):
            self.assertIs(controller.get_transfer(index), transfers[index])

    def test_capability_query_fails_loudly(self):
        controller, sweepers, _ = self.build(2)
        special = SpecialSweeper("special")
        controller.add_level(special, NullTransfer(), coarse=False)

        self.assertIs(controller.get_finest(SpecialSweeper), special)
        with self.assertRaises(AssertionError):
            controller.get_level(0, SpecialSweeper)
        with self.assertRaises(AssertionError):
            controller.get_transfer(0)

    def test_out_of_range_access(self):
        controller, _, _ = self.build(2)
        for bad in [-1, 2, 10]:
            with self.assertRaises(AssertionError):
                controller.get_level(bad)
            with self.assertRaises(AssertionError):
                controller.get_transfer(bad)

    def test_cursor_bounds_and_traversal(self):
        for size in [1, 2, 5]:
            controller, sweepers, _ = self.build(size)
            self.assertEqual(controller.coarsest().level, 0)
            self.assertEqual(controller.finest().level, size - 1)

            visited = []
            level_iter = controller.coarsest()
            while level_iter <= controller.finest():
                visited.append(level_iter.level)
                self.assertIs(level_iter.current(), sweepers[level_iter.level])
                level_iter.increment()
            self.assertEqual(visited, list(range(size)))

            self.assertEqual([l.level for l in controller.iter_levels()], list(range(size)))
            self.assertEqual([l.level for l in controller.iter_levels(reverse=True)], list(reversed(range(size))))

    def test_cursor_arithmetic_and_neighbors(self):
        controller, sweepers, transfers = self.build(3)
        cursor = controller.coarsest() + 1

        self.assertIsInstance(cursor, LevelIter)
        self.assertIs(cursor.current(), sweepers[1])
        self.assertIs(cursor.fine(), sweepers[2])
        self.assertIs(cursor.coarse(), sweepers[0])
        self.assertIs(cursor.transfer(), transfers[1])

        self.assertEqual((cursor - 1).level, 0)
        self.assertEqual(controller.finest() - controller.coarsest(), 2)

        copy = cursor + 0
        copy.increment()
        self.assertEqual(cursor.level, 1, "cursor copies are independent")
        copy.decrement().decrement()
        self.assertEqual(copy.level, 0)

        with self.assertRaises(AssertionError):
            controller.finest().fine()
        with self.assertRaises(AssertionError):
            controller.coarsest().coarse()

    def test_cursor_comparisons(self):
        controller, _, _ = self.build(3)
        low, high = controller.coarsest(), controller.finest()

        self.assertTrue(low < high)
        self.assertTrue(low <= high)
        self.assertTrue(high > low)
        self.assertTrue(high >= low)
        self.assertTrue(low != high)
        self.assertTrue(low == high - 2)
        self.assertTrue(low <= low + 0)
        self.assertTrue(low >= low + 0)
        self.assertFalse(low < low + 0)
        self.assertEqual(int(high), 2)

    def test_setup_walks_coarsest_to_finest(self):
        controller = Controller()
        log = []
        for index in range(3):
            controller.add_level(
                CountingSweeper("level {}".format(index), log),
                NullTransfer() if index > 0 else None,
                coarse=False)

        controller.setup()

        self.assertEqual([entry[0] for entry in log], ["level 0", "level 1", "level 2"])
        self.assertTrue(all(entry[2] is controller for entry in log), "back reference set before setup")
        self.assertTrue(all(entry[1] is False for entry in log))
        for sweeper in controller.levels:
            self.assertIs(sweeper.get_controller(), controller)

    def test_setup_rejects_bad_hierarchies(self):
        with self.assertRaises(AssertionError):
            Controller().setup()

        controller = Controller()
        controller.add_level(CountingSweeper("fine"))
        controller.add_level(CountingSweeper("coarse"))
        with self.assertRaises(AssertionError):
            controller.setup()

    def test_hierarchy_frozen_after_setup(self):
        controller, _, _ = self.build(2)
        controller.setup()
        with self.assertRaises(AssertionError):
            controller.add_level(CountingSweeper("late"), NullTransfer(), coarse=False)

    def test_add_level_type_checks(self):
        controller = Controller()
        with self.assertRaises(AssertionError):
            controller.add_level(object())
        with self.assertRaises(AssertionError):
            controller.add_level(CountingSweeper("ok"), transfer=object())


class TestTimingTable(unittest.TestCase):
    def test_levels_without_a_phase_show_na(self):
        controller = Controller()
        coarse, fine = CountingSweeper("coarse"), CountingSweeper("fine")
        controller.add_level(coarse)
        controller.add_level(fine, NullTransfer(), coarse=False)
        controller.setup()
        with fine.timer("interpolate"):
            pass

        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            controller.show_timing_information()
        lines = output.getvalue().splitlines()

        interpolate_row = [line for line in lines if line.startswith("interpolate")]
        self.assertEqual(len(interpolate_row), 1)
        self.assertIn("NA", interpolate_row[0])
        self.assertTrue(any(line.startswith("timer setup") for line in lines), "controller phases close the table")


class TestControllerOptions(unittest.TestCase):
    def tearDown(self):
        config.clear()

    def test_set_options_from_configuration(self):
        config.get_configuration(["--tend", "2.0", "--dt", "0.5", "--num-iters", "7", "--t0", "1.0"])

        controller = Controller()
        sweepers = [CountingSweeper("coarse"), CountingSweeper("fine")]
        controller.add_level(sweepers[0])
        controller.add_level(sweepers[1], NullTransfer(), coarse=False)

        controller.set_options()

        self.assertEqual(controller.get_end_time(), 2.0)
        self.assertEqual(controller.get_time_step(), 0.5)
        self.assertEqual(controller.get_max_iterations(), 7)
        self.assertEqual(controller.get_time(), 1.0)
        self.assertEqual(controller.steps.n, 2)
        self.assertTrue(all(sweeper.options_set for sweeper in sweepers))

    def test_set_options_for_controller_only(self):
        config.get_configuration(["--dt", "0.1"])
        controller = Controller()
        sweeper = CountingSweeper("only")
        controller.add_level(sweeper)
        controller.set_duration(0.0, 1.0, 0.5, 3)

        controller.set_options(all_sweepers=False)

        self.assertEqual(controller.get_time_step(), 0.1)
        self.assertEqual(controller.get_end_time(), 1.0, "unset options keep their current value")
        self.assertEqual(controller.get_max_iterations(), 3)
        self.assertFalse(sweeper.options_set)


if __name__ == '__main__':
    unittest.main()
