# analytics_worker.py

from PyQt5.QtCore import QCoreApplication, QObject, QRunnable, QThreadPool, pyqtSignal, pyqtSlot
from typing import List, Optional, Tuple
import logging

from analytics import computeCentralities
from config import AnalyticsConfig

logger = logging.getLogger(__name__)


class _WorkerSignals(QObject):
    """Lives on the interaction thread; emissions from the pool arrive queued."""
    done = pyqtSignal(int, object)    # generation, {node_id: {measure: score}}
    error = pyqtSignal(int, str)      # generation, message


class _AnalyticsTask(QRunnable):
    def __init__(self, generation: int, nodes: List[dict], edges: List[dict],
                 config: AnalyticsConfig, signals: _WorkerSignals):
        super().__init__()
        self.generation = generation
        self.nodes = nodes
        self.edges = edges
        self.config = config
        self.signals = signals

    def run(self) -> None:
        try:
            scores = computeCentralities(self.nodes, self.edges, self.config)
        except Exception as e:
            logger.exception("analytics pass %d failed", self.generation)
            self.signals.error.emit(self.generation, f"{type(e).__name__}: {e}")
            return
        self.signals.done.emit(self.generation, scores)


class AnalyticsRunner(QObject):
    """
    Runs centrality passes off the interaction thread, one at a time.

    Every request bumps a generation counter. A request made while a pass is
    running replaces any earlier waiting request, so bursts coalesce into a
    single follow-up pass. Results are only re-emitted through `finished`
    when their generation is still the newest; anything older is dropped.
    Inputs must be value copies (snapshot records), never live entities.
    """

    finished = pyqtSignal(int, object)
    failed = pyqtSignal(int, str)

    def __init__(self, config: Optional[AnalyticsConfig] = None, parent=None):
        super().__init__(parent)
        self.config = config or AnalyticsConfig()
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(1)
        self._signals = _WorkerSignals()
        self._signals.done.connect(self._onDone)
        self._signals.error.connect(self._onError)
        self._generation = 0
        self._running = False
        self._pending: Optional[Tuple[int, List[dict], List[dict]]] = None

    def isBusy(self) -> bool:
        return self._running or self._pending is not None

    def request(self, nodes: List[dict], edges: List[dict]) -> int:
        self._generation += 1
        gen = self._generation
        if self._running:
            if self._pending is not None:
                logger.debug("analytics request %d supersedes %d", gen, self._pending[0])
            self._pending = (gen, nodes, edges)
            return gen
        self._start(gen, nodes, edges)
        return gen

    def cancel(self) -> None:
        # The running pass cannot be interrupted, but its result becomes stale
        self._generation += 1
        self._pending = None

    def _start(self, gen: int, nodes: List[dict], edges: List[dict]) -> None:
        self._running = True
        logger.debug("analytics pass %d started (%d nodes, %d edges)", gen, len(nodes), len(edges))
        self._pool.start(_AnalyticsTask(gen, nodes, edges, self.config, self._signals))

    def _next(self) -> None:
        self._running = False
        if self._pending is not None:
            gen, nodes, edges = self._pending
            self._pending = None
            self._start(gen, nodes, edges)

    @pyqtSlot(int, object)
    def _onDone(self, gen: int, scores: object) -> None:
        self._next()
        if gen != self._generation:
            logger.debug("dropping stale analytics result %d (latest %d)", gen, self._generation)
            return
        self.finished.emit(gen, scores)

    @pyqtSlot(int, str)
    def _onError(self, gen: int, message: str) -> None:
        self._next()
        if gen == self._generation:
            self.failed.emit(gen, message)

    def waitForDone(self, timeout_ms: int = 30000) -> bool:
        """Block until no pass is running or waiting, delivering queued results."""
        while self._running:
            if not self._pool.waitForDone(timeout_ms):
                return False
            QCoreApplication.processEvents()
        return True
