"""
search.py
Run an evolution controller on a background worker thread.

The search loop itself is single-threaded; this wrapper only moves it off
the caller's thread so that improvements can be consumed while the search
runs. Improvements are delivered two ways: pushed onto the `improvements`
queue, and passed to the optional listener callback (on the worker thread).
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional

from ..core.chromosome import Chromosome
from .config import GAConfig
from .evolution import EvolutionController, Improvement, Listener


class Search:
    """
    A cancellable folding search on its own worker thread.

    Parameters
    ----------
    acid_string : str
        HP sequence to fold.
    target_fitness : int
        Non-positive goal fitness.
    listener : callable, optional
        Called with each :class:`Improvement` on the worker thread.
    config : GAConfig or dict, optional
    seed : int, optional
    verbose : bool
        Print per-generation progress lines.
    max_generations : int, optional
        Give up after this many generations instead of running until the
        target is reached.
    """

    def __init__(
        self,
        acid_string: str,
        target_fitness: int,
        listener: Optional[Listener] = None,
        config: GAConfig | Dict | None = None,
        seed: Optional[int] = None,
        verbose: bool = False,
        max_generations: Optional[int] = None,
    ):
        self.acid_string = acid_string
        self.target_fitness = target_fitness
        self.listener = listener
        self.config = config
        self.seed = seed
        self.verbose = verbose
        self.max_generations = max_generations

        self.improvements: "queue.Queue[Improvement]" = queue.Queue()
        self.controller: Optional[EvolutionController] = None
        self._stop = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="hp-fold-search")
        self._future: Optional[Future] = None

    def _dispatch(self, improvement: Improvement):
        self.improvements.put(improvement)
        if self.listener is not None:
            self.listener(improvement)

    def _run(self) -> Chromosome:
        self.controller = EvolutionController(
            self.acid_string,
            self.target_fitness,
            config=self.config,
            seed=self.seed,
            listener=self._dispatch,
            stop_event=self._stop,
            verbose=self.verbose,
        )
        return self.controller.run(self.max_generations)

    def start(self) -> Future:
        """Begin the search; returns the Future of the best chromosome."""
        if self._future is not None:
            raise RuntimeError("Search already started")
        self._future = self._executor.submit(self._run)
        # Single-use executor: release the worker thread as soon as the run ends.
        self._future.add_done_callback(lambda _: self._executor.shutdown(wait=False))
        return self._future

    def cancel(self):
        """Stop the search before its next generation."""
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def result(self, timeout: Optional[float] = None) -> Chromosome:
        """Block until the search ends and return the best chromosome found."""
        if self._future is None:
            raise RuntimeError("Search has not been started")
        return self._future.result(timeout=timeout)

    def running(self) -> bool:
        return self._future is not None and self._future.running()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "Search":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        self.shutdown(wait=True)
