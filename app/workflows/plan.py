"""
Ordered multi-statement writes.

A ``WritePlan`` is a fixed sequence of steps run inside one ``transaction()``.
Each step receives the shared context (updated with whatever earlier steps
returned). The first step that raises stops the plan; the transaction is rolled
back and the failure surfaces as a ``PersistenceError`` naming that step, with
the underlying exception chained.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.errors import APSError, PersistenceError
from app.models.database import transaction

logger = logging.getLogger(__name__)

StepFn = Callable[[dict[str, Any]], "dict[str, Any] | None"]


class WritePlan:

    def __init__(self, name: str, action: str):
        self.name = name
        self.action = action
        self.steps: list[tuple[str, StepFn]] = []

    def add_step(self, name: str, execute_fn: StepFn) -> WritePlan:
        if name in self.step_names():
            raise ValueError(f"Duplicate step name: {name}")
        self.steps.append((name, execute_fn))
        return self

    def step_names(self) -> list[str]:
        return [name for name, _ in self.steps]

    def run(self, db: Session, context: dict[str, Any]) -> dict[str, Any]:
        """Run every step in order and commit; returns the final context."""
        context = dict(context)
        with transaction(db, self.action):
            for name, execute_fn in self.steps:
                try:
                    context.update(execute_fn(context) or {})
                except APSError:
                    raise
                except Exception as exc:
                    logger.error("Paso '%s' de '%s' falló: %s", name, self.name, exc)
                    raise PersistenceError(f"Error en {self.action}; paso fallido: {name}") from exc
                logger.debug("Paso '%s' de '%s' completado", name, self.name)
        return context
