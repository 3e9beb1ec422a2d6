"""Step clock protocol — monotonically increasing block-height analogue."""
from typing import Protocol


class StepClock(Protocol):
    async def current_step(self) -> int: ...
