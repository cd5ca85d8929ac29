"""
Tests for hp_fold.algorithms.search
"""

import queue
import threading
import unittest

from hp_fold.algorithms.config import GAConfig
from hp_fold.algorithms.evolution import EvolutionState
from hp_fold.algorithms.search import Search


SMALL = GAConfig(population_size=40, stagnation_threshold=5)


def _drain(q):
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items


class TestSearch(unittest.TestCase):

    def test_runs_to_target(self):
        notified = []
        with Search("HHPPHH", -2, listener=notified.append, config=SMALL, seed=1,
                    max_generations=500) as search:
            search.start()
            best = search.result(timeout=120)
            self.assertTrue(search.done())
        self.assertEqual(best.fitness, -2)
        self.assertEqual(search.controller.state, EvolutionState.CONVERGED)
        self.assertEqual(_drain(search.improvements), search.controller.improvements)
        self.assertEqual(notified, search.controller.improvements)

    def test_cancel_stops_search(self):
        with Search("HPHPH", -1, config=SMALL, seed=0) as search:
            search.start()
            search.cancel()
            best = search.result(timeout=120)
        self.assertTrue(search.cancelled)
        self.assertEqual(best.fitness, 0)
        self.assertEqual(search.controller.state, EvolutionState.CANCELLED)

    def test_worker_thread_released_without_context_manager(self):
        search = Search("HHPPHH", 0, config=SMALL, seed=0)
        search.start()
        search.result(timeout=120)
        for thread in threading.enumerate():
            if thread.name.startswith("hp-fold-search"):
                thread.join(timeout=30)
        workers = [t for t in threading.enumerate()
                   if t.name.startswith("hp-fold-search") and t.is_alive()]
        self.assertEqual(workers, [])

    def test_result_before_start(self):
        with Search("HHPPHH", -2, config=SMALL, seed=0) as search:
            with self.assertRaises(RuntimeError):
                search.result()
            self.assertFalse(search.running())
            self.assertFalse(search.done())

    def test_start_twice(self):
        with Search("HHPPHH", 0, config=SMALL, seed=0) as search:
            search.start()
            with self.assertRaises(RuntimeError):
                search.start()
            search.result(timeout=120)

    def test_invalid_sequence_surfaces_from_result(self):
        with Search("HHXX", -1, config=SMALL, seed=0) as search:
            search.start()
            with self.assertRaises(ValueError):
                search.result(timeout=120)


if __name__ == "__main__":
    unittest.main()
