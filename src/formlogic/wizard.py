"""
Multi-step navigation over one store.

Each step owns a list of top-level fields. Only the current step is
rendered; moving forward validates the step's visible fields first, and
the last step submits the whole value tree.

Values entered on earlier steps stay in the store when the user moves on,
so they are part of the submitted tree.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from formlogic.analyzer import validate_schema
from formlogic.config import EngineConfig
from formlogic.engine import FormEngine
from formlogic.dispatcher import RenderNode
from formlogic.model import FieldSchema
from formlogic.store import FormStore

logger = logging.getLogger(__name__)


@dataclass
class WizardStep:
    fields: List[FieldSchema] = field(default_factory=list)
    title: Optional[str] = None
    description: Optional[str] = None


class FormWizard:
    """
    Step navigation for a multi-page form.

    Args:
        steps: Non-empty list of WizardStep
        store: Store shared by every step
        on_submit: Called with store.watch_all() when the last step validates
        on_step_change: Called with the new step index after a move
        config: EngineConfig handed to each step's engine
    """

    def __init__(
        self,
        steps: List[WizardStep],
        store: FormStore,
        on_submit: Callable[[Any], None],
        on_step_change: Optional[Callable[[int], None]] = None,
        config: Optional[EngineConfig] = None,
    ):
        if not steps:
            raise ValueError("FormWizard needs at least one step")
        # all steps share one value tree, so names must be unique across them
        validate_schema([f for step in steps for f in step.fields])

        self._steps = list(steps)
        self._store = store
        self._on_submit = on_submit
        self._on_step_change = on_step_change
        self._config = config
        self._index = 0
        self._engine = self._build_engine()

    @property
    def current_step(self) -> int:
        return self._index

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def step(self) -> WizardStep:
        return self._steps[self._index]

    @property
    def engine(self) -> FormEngine:
        """Engine for the current step."""
        return self._engine

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self._steps) - 1

    def render(self) -> List[RenderNode]:
        return self._engine.render()

    def next(self) -> bool:
        """
        Validate the current step, then advance or submit.

        Returns:
            True if the step was valid (and the wizard moved or submitted)
        """
        self._engine.render()
        if not self._engine.validate():
            logger.debug("Step %d has validation errors", self._index)
            return False

        if self.is_last:
            self._on_submit(self._store.watch_all())
            return True

        self._go_to(self._index + 1)
        return True

    def prev(self) -> bool:
        if self.is_first:
            return False
        self._go_to(self._index - 1)
        return True

    def close(self) -> None:
        self._engine.close()

    def _go_to(self, index: int) -> None:
        self._engine.close()
        self._index = index
        self._engine = self._build_engine()
        self._engine.render()
        if self._on_step_change is not None:
            self._on_step_change(index)

    def _build_engine(self) -> FormEngine:
        return FormEngine(self.step.fields, self._store, config=self._config)
