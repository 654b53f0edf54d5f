from __future__ import annotations

import asyncio
import itertools
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

_EMPTY_PARAMETERS: Mapping[str, Any] = MappingProxyType({})


def _get_context_id() -> tuple[int, int | None]:
    """Get an identifier for the current execution context.

    Combines the current thread with the id of the current async task, if any.
    """
    try:
        task = asyncio.current_task()
        task_id = id(task) if task is not None else None
    except RuntimeError:
        task_id = None
    return threading.get_ident(), task_id


@dataclass(slots=True)
class ResolutionState:
    """Per-call-tree resolution state.

    ``build_stack`` lists the classes currently being constructed, innermost
    last. ``parameter_frames`` holds the ``make`` parameter overrides, one frame
    per active ``make`` call.
    """

    build_stack: list[Any] = field(default_factory=list)
    parameter_frames: list[Mapping[str, Any]] = field(default_factory=list)

    def clone(self) -> ResolutionState:
        return ResolutionState(list(self.build_stack), list(self.parameter_frames))


class ResolutionStack:
    """Context-local build stack and parameter override frames for one container.

    Each thread and each asyncio task gets its own state. A task spawned while
    a resolution is in progress starts from a copy of its parent's state, so
    sibling tasks never see each other's frames.
    """

    _counter: ClassVar[itertools.count[int]] = itertools.count()

    __slots__ = ("_state",)

    def __init__(self) -> None:
        self._state: ContextVar[tuple[tuple[int, int | None], ResolutionState] | None] = (
            ContextVar(f"rewire_resolution_state_{next(self._counter)}", default=None)
        )

    def current(self) -> ResolutionState:
        """Get the current context's resolution state.

        When called from a different thread or async task than the one that
        created the state, returns a cloned copy to keep concurrent resolutions
        isolated.
        """
        context_id = _get_context_id()
        stored = self._state.get()

        if stored is None:
            state = ResolutionState()
            self._state.set((context_id, state))
            return state

        owner_id, state = stored
        if owner_id != context_id:
            cloned = state.clone()
            self._state.set((context_id, cloned))
            return cloned

        return state

    @property
    def build_stack(self) -> list[Any]:
        return self.current().build_stack

    def top(self) -> Any | None:
        """Return the innermost class under construction, or ``None``."""
        stack = self.current().build_stack
        return stack[-1] if stack else None

    def last_parameters(self) -> Mapping[str, Any]:
        frames = self.current().parameter_frames
        return frames[-1] if frames else _EMPTY_PARAMETERS

    @contextmanager
    def building(self, concrete: Any) -> Iterator[None]:
        """Keep ``concrete`` on the build stack for the duration of the block."""
        stack = self.current().build_stack
        stack.append(concrete)
        try:
            yield
        finally:
            stack.pop()

    @contextmanager
    def parameters(self, parameters: Mapping[str, Any]) -> Iterator[None]:
        """Keep ``parameters`` as the innermost override frame for the block."""
        frames = self.current().parameter_frames
        frames.append(parameters)
        try:
            yield
        finally:
            frames.pop()


__all__ = ["ResolutionStack", "ResolutionState"]
