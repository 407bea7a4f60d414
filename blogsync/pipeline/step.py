"""Pipeline step base class."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..config import ConfigModel
from ..db import Store
from .models import Phase, StepResult


class StepContext:
    """What a step gets to work with during a run."""

    def __init__(
        self,
        config: ConfigModel,
        logger: logging.Logger,
        store: Optional[Store] = None,
    ) -> None:
        self.config = config
        self.logger = logger
        self.store = store


class PipelineStep(ABC):
    """A unit of work tagged with the phase it runs in.

    Subclasses set ``name``, ``description`` and ``phase`` and implement
    ``execute``. The orchestrator calls ``run``, which binds the context and
    takes care of timing and logging. Steps may record counters in ``stats``
    for the run summary.
    """

    name: str = ""
    description: str = ""
    phase: Phase

    def __init__(self) -> None:
        self.ctx: Optional[StepContext] = None
        self.stats: Dict[str, Any] = {}

    @property
    def config(self) -> ConfigModel:
        return self._context().config

    @property
    def store(self) -> Store:
        store = self._context().store
        if store is None:
            raise RuntimeError(f"Step {self.name!r} needs a store, none is open")
        return store

    @property
    def logger(self) -> logging.Logger:
        return self._context().logger

    def _context(self) -> StepContext:
        if self.ctx is None:
            raise RuntimeError(f"Step {self.name!r} is not running")
        return self.ctx

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Log through the run logger with the step name as prefix."""
        self.logger.log(level, "[%s] %s", self.name, message)

    @abstractmethod
    async def execute(self, data: Any) -> Any:
        """
        Do the step's work.

        Args:
            data: Output of the previous step (None for the first fetch step)

        Returns:
            Input for the next step
        """
        pass

    async def run(self, data: Any, ctx: StepContext) -> StepResult:
        """Execute with the given context, timing and logging the call."""
        self.ctx = ctx
        self.stats = {}
        self.log(f"Starting: {self.description}", logging.DEBUG)

        start = time.perf_counter()
        try:
            output = await self.execute(data)
        except Exception as e:
            self.log(f"Failed: {e}", logging.ERROR)
            raise
        duration = time.perf_counter() - start

        self.log(f"Completed in {duration:.2f}s")
        return StepResult(data=output, duration=duration)
