"""
Tests for hp_fold.algorithms.evolution
"""

import io
import threading
import unittest
from contextlib import redirect_stdout

from hp_fold.algorithms.config import GAConfig
from hp_fold.algorithms.evolution import EvolutionController, EvolutionState, Improvement


SMALL = GAConfig(population_size=40, stagnation_threshold=3)


class TestTargets(unittest.TestCase):

    def test_positive_target_rejected(self):
        with self.assertRaises(ValueError):
            EvolutionController("HHPPHH", 1, config=SMALL, seed=0)

    def test_non_integer_target_rejected(self):
        with self.assertRaises(ValueError):
            EvolutionController("HHPPHH", -1.5, config=SMALL, seed=0)
        with self.assertRaises(ValueError):
            EvolutionController("HHPPHH", False, config=SMALL, seed=0)

    def test_invalid_sequence_rejected(self):
        with self.assertRaises(ValueError):
            EvolutionController("HHXPHH", -1, config=SMALL, seed=0)

    def test_config_dict_accepted(self):
        controller = EvolutionController("HHPPHH", 0, config={"population_size": 20}, seed=0)
        self.assertEqual(controller.config.population_size, 20)
        self.assertEqual(controller.generation.size, 20)


class TestImmediateConvergence(unittest.TestCase):

    def test_target_zero_converges_at_generation_zero(self):
        controller = EvolutionController("HPHPPHHPHPPH", 0, config=SMALL, seed=3)
        self.assertEqual(controller.state, EvolutionState.CONVERGED)
        best = controller.run()
        self.assertEqual(controller.generation_count, 0)
        self.assertIs(best, controller.generation.best)
        with self.assertRaises(RuntimeError):
            controller.step()

    def test_target_equal_to_initial_best(self):
        probe = EvolutionController("HPHPPHHPHPPHPHHPPHPH", 0, config=SMALL, seed=17)
        initial_best = probe.best.fitness

        notified = []
        controller = EvolutionController(
            "HPHPPHHPHPPHPHHPPHPH", initial_best, config=SMALL, seed=17,
            listener=notified.append,
        )
        first_generation = controller.generation
        fitness, walk, info = controller.solve()
        self.assertEqual(fitness, initial_best)
        self.assertTrue(info["converged"])
        self.assertEqual(info["generations"], 0)
        self.assertIs(controller.generation, first_generation)
        self.assertEqual(notified, [])


class TestSearchLoop(unittest.TestCase):

    def test_reaches_rectangle_optimum(self):
        notified = []
        controller = EvolutionController(
            "HHPPHH", -2, config=SMALL, seed=1, listener=notified.append
        )
        best = controller.run(max_generations=500)
        self.assertTrue(controller.converged)
        self.assertEqual(best.fitness, -2)
        self.assertEqual(notified, controller.improvements)

    def test_improvements_strictly_better(self):
        controller = EvolutionController("HPHPPHHPHPPHPHHPPHPH", -9, config=SMALL, seed=4)
        controller.run(max_generations=30)
        previous = controller.history[0]
        last_generation = 0
        for imp in controller.improvements:
            self.assertIsInstance(imp, Improvement)
            self.assertLess(imp.fitness, previous)
            self.assertGreater(imp.generation, last_generation)
            self.assertEqual(imp.fitness, imp.chromosome.fitness)
            self.assertEqual(controller.history[imp.generation], imp.fitness)
            sequence, coords = imp.structure
            self.assertEqual(sequence, "HPHPPHHPHPPHPHHPPHPH")
            self.assertEqual(len(coords), 20)
            previous = imp.fitness
            last_generation = imp.generation

    def test_history_is_monotone(self):
        controller = EvolutionController("HPHPPHHPHPPHPHHPPHPH", -9, config=SMALL, seed=8)
        controller.run(max_generations=15)
        self.assertEqual(len(controller.history), controller.generation_count + 1)
        for a, b in zip(controller.history, controller.history[1:]):
            self.assertLessEqual(b, a)

    def test_seeded_runs_are_reproducible(self):
        runs = []
        for _ in range(2):
            controller = EvolutionController("HPHPPHHPHPPH", -4, config=SMALL, seed=99)
            controller.run(max_generations=5)
            runs.append((controller.history, controller.best.walk))
        self.assertEqual(runs[0], runs[1])


class TestStagnationAndCancel(unittest.TestCase):
    # Every H of HPHPH sits on an even index, so fitness is always 0.

    def test_stagnation_escalates_to_double_point(self):
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0)
        self.assertFalse(controller.double_point_mutation)
        for _ in range(3):
            self.assertIsNone(controller.step())
        self.assertEqual(controller.stagnant_generations, 3)
        self.assertTrue(controller.double_point_mutation)

    def test_max_generations_stops_running_search(self):
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0)
        controller.run(max_generations=5)
        self.assertEqual(controller.generation_count, 5)
        self.assertEqual(controller.state, EvolutionState.RUNNING)

    def test_cancel_before_run(self):
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0)
        controller.cancel()
        fitness, walk, info = controller.solve()
        self.assertEqual(controller.state, EvolutionState.CANCELLED)
        self.assertEqual(info["generations"], 0)
        self.assertTrue(info["cancelled"])
        self.assertFalse(info["converged"])
        self.assertEqual(fitness, 0)
        self.assertEqual(len(walk), 5)

    def test_external_stop_event(self):
        stop = threading.Event()
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0, stop_event=stop)
        controller.step()
        stop.set()
        controller.run()
        self.assertEqual(controller.generation_count, 1)
        self.assertTrue(controller.cancelled)

    def test_verbose_progress_line(self):
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0, verbose=True)
        buf = io.StringIO()
        with redirect_stdout(buf):
            controller.step()
        self.assertEqual(buf.getvalue().splitlines()[0], "Generation 1\t0: 40 / 40")

    def test_solve_info_keys(self):
        controller = EvolutionController("HPHPH", -1, config=SMALL, seed=0)
        _, _, info = controller.solve(max_generations=2)
        self.assertEqual(
            set(info),
            {"history", "generations", "converged", "cancelled", "time_seconds", "improvements"},
        )
        self.assertEqual(info["history"], [0, 0, 0])


if __name__ == "__main__":
    unittest.main()
