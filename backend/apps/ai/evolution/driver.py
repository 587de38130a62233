"""
Background driver for continuous evolution.

Runs Population.step() on a worker thread until stopped. Pausing and
stopping take effect between generations: a generation that has
started always completes, so fitness is never half-aggregated.
"""
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional

from .population import GenerationStats, Population

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """One line of the driver's event log."""
    message: str
    level: int = logging.INFO
    timestamp: float = field(default_factory=time.time)


class EvolutionDriver:
    """
    Repeatedly step a population on a background thread.

    Attributes:
        population: The population being evolved.
        max_generations: Stop after this many generations (None = forever).
        events: Bounded log of recent driver events.

    Example:
        driver = EvolutionDriver(population, max_generations=50)
        driver.start()
        ...
        driver.pause()   # finishes the current generation, then waits
        driver.resume()
        driver.stop()    # finishes the current generation, then exits
        driver.join()
    """

    def __init__(
        self,
        population: Population,
        max_generations: Optional[int] = None,
        on_generation: Optional[Callable[[GenerationStats], None]] = None,
        log_size: int = 500,
    ):
        self.population = population
        self.max_generations = max_generations
        self.on_generation = on_generation
        self.events: Deque[LogEntry] = deque(maxlen=log_size)
        self.generations_run = 0

        self._running = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_paused(self) -> bool:
        return not self._running.is_set()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            raise RuntimeError("Driver is already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='evolution-driver', daemon=True)
        if self.population.budget_exhausted:
            self._running.clear()
            self._thread.start()
            self._log("Evolution started paused: cost budget exhausted", logging.WARNING)
            return
        self._running.set()
        self._thread.start()
        self._log("Evolution started")

    def pause(self) -> None:
        self._running.clear()
        self._log("Evolution paused")

    def resume(self) -> None:
        if self.population.budget_exhausted:
            self._log("Cannot resume: cost budget exhausted", logging.WARNING)
            return
        self._running.set()
        self._log("Evolution resumed")

    def stop(self) -> None:
        self._stop.set()
        # Wake a paused loop so it can observe the stop flag.
        self._running.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def recent_events(self, n: int = 20) -> List[LogEntry]:
        return list(self.events)[-n:]

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.events.append(LogEntry(message=message, level=level))
        logger.log(level, message)

    def _run(self) -> None:
        while not self._stop.is_set():
            self._running.wait()
            if self._stop.is_set():
                break
            if self.population.budget_exhausted:
                self._running.clear()
                self._log("Cost budget exhausted; evolution paused", logging.WARNING)
                continue

            stats = self.population.step()
            if stats is None:
                continue
            self.generations_run += 1
            self._log(
                f"Generation {stats.generation}: best {stats.best_fitness:.2f}, "
                f"avg {stats.avg_fitness:.2f}"
            )
            if self.on_generation is not None:
                self.on_generation(stats)

            if self.population.budget_exhausted:
                self._running.clear()
                self._log(
                    f"Cost budget reached ({stats.cumulative_cost:.0f}); evolution paused",
                    logging.WARNING,
                )
            if self.max_generations is not None and self.generations_run >= self.max_generations:
                break

        self._running.clear()
        self._log("Evolution stopped")
