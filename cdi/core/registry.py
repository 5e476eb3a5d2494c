"""Stage registry for the CDI pipeline."""
from __future__ import annotations

from typing import Callable, Dict, Iterator, List

from .stage import StageCallable, StageDefinition

DEFAULT_ORDER = 100


class StageRegistry:
    """Keeps track of the available pipeline stages.

    Stages are listed by their ``order`` value and then by registration
    order, so the pipeline sequence does not depend on which stage package
    happens to be imported first.
    """

    def __init__(self) -> None:
        self._stages: Dict[str, StageDefinition] = {}

    def register(
        self,
        name: str,
        func: StageCallable,
        description: str = "",
        *,
        order: int = DEFAULT_ORDER,
    ) -> StageCallable:
        """Register a new stage and return the callable for decorator usage."""

        if name in self._stages:
            raise ValueError(f"Stage '{name}' is already registered")
        self._stages[name] = StageDefinition(
            name=name,
            callable=func,
            description=description,
            module=func.__module__,
            order=order,
        )
        return func

    def get(self, name: str) -> StageDefinition:
        try:
            return self._stages[name]
        except KeyError as exc:
            raise KeyError(f"Stage '{name}' is not registered") from exc

    def __contains__(self, name: str) -> bool:
        return name in self._stages

    def __iter__(self) -> Iterator[StageDefinition]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._stages)

    def items(self) -> List[StageDefinition]:
        # sorted() is stable, so equal orders keep registration order
        return sorted(self._stages.values(), key=lambda definition: definition.order)

    def names(self) -> List[str]:
        """Return registered stage names in pipeline order."""

        return [definition.name for definition in self.items()]


registry = StageRegistry()


def register_stage(
    name: str,
    description: str = "",
    *,
    order: int = DEFAULT_ORDER,
) -> Callable[[StageCallable], StageCallable]:
    """Decorator to register a stage when defining the function."""

    def decorator(func: StageCallable) -> StageCallable:
        return registry.register(name, func, description=description, order=order)

    return decorator
