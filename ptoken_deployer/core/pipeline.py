"""
Sequential stage composition

A Pipeline threads one value through an ordered list of stages. A stage is
any callable taking the previous stage's result; coroutine results are
awaited before the next stage starts. The first exception stops the run and
propagates unchanged.
"""

import inspect
import logging
from typing import Any, Callable, List, Optional

LOG = logging.getLogger(__name__)

Stage = Callable[[Any], Any]


class Pipeline:
    """Ordered list of stages run strictly one after another"""

    def __init__(self, name: str, stages: Optional[List[Stage]] = None):
        self.name = name
        self.stages: List[Stage] = list(stages or [])

    def then(self, stage: Stage) -> "Pipeline":
        """Append a stage, returns self for chaining"""
        self.stages.append(stage)
        return self

    async def run(self, value: Any = None) -> Any:
        for index, stage in enumerate(self.stages):
            stage_name = getattr(stage, "__name__", repr(stage))
            LOG.debug(f"[{self.name}] stage {index + 1}/{len(self.stages)}: {stage_name}")
            value = stage(value)
            if inspect.isawaitable(value):
                value = await value
        return value

    def __len__(self) -> int:
        return len(self.stages)
