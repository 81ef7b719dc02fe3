"""Declarative dialog steps.

A step graph is pure data plus optional callables. Only the runner interprets
it; feature modules build it, usually through `ConversationBuilder`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from convotree.context import maybe_await
from convotree.errors import StepGraphError

if TYPE_CHECKING:
    from convotree.context import ConversationContext
    from convotree.transport.events import ButtonEvent

CANCEL = "cancel"
ROW_BREAK = "__row__"

type StepResult = Step | None | Awaitable[Step | None]
type Validator = Callable[[str], bool | Awaitable[bool]]
type TextTransition = Callable[[str], StepResult]
type SelectHook = Callable[[str, ConversationContext, ButtonEvent], Awaitable[None] | None]


@dataclass(frozen=True)
class Deferred:
    """A successor built only when it is reached."""

    factory: Callable[[], StepResult]

    async def resolve(self) -> Step | None:
        return await maybe_await(self.factory())


type NextStep = Step | None | Deferred


async def resolve_step(value: NextStep) -> Step | None:
    """Turn a resolved or deferred successor into a step or None."""
    if isinstance(value, Deferred):
        value = await value.resolve()
    if value is None or isinstance(value, TextStep | ButtonStep):
        return value
    raise StepGraphError(f"successor is not a step: {value!r}")


@dataclass(frozen=True)
class TextStep:
    """Free text prompt.

    `next` is consulted with the raw text once `validate` accepts it (or when
    there is no validator); a rejected input re-presents the step with `error`.
    """

    key: str
    prompt: str
    next: TextTransition
    prompt_params: Mapping[str, str] | None = None
    validate: Validator | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.next):
            raise StepGraphError(f"text step {self.key!r} has no transition")


@dataclass(frozen=True)
class ButtonOption:
    """One menu button. `text` is a catalog key unless `literal` is set."""

    text: str
    data: str
    next: NextStep = None
    url: str | None = None
    literal: bool = False

    @classmethod
    def row_break(cls) -> ButtonOption:
        return cls(text="", data=ROW_BREAK)

    @property
    def is_row_break(self) -> bool:
        return self.data == ROW_BREAK


@dataclass(frozen=True)
class ButtonStep:
    """Inline button menu.

    The `cancel` payload always ends the conversation. With `in_place` set,
    consecutive in-place menus reuse one message instead of sending new ones.
    """

    key: str
    prompt: str
    options: Sequence[ButtonOption] = field(default_factory=tuple)
    prompt_params: Mapping[str, str] | None = None
    on_select: SelectHook | None = None
    in_place: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        seen: set[str] = set()
        for option in self.options:
            if option.is_row_break:
                continue
            if option.data in seen:
                raise StepGraphError(f"button step {self.key!r} has duplicate option data {option.data!r}")
            seen.add(option.data)

    def find(self, data: str) -> ButtonOption | None:
        for option in self.options:
            if not option.is_row_break and option.data == data:
                return option
        return None


type Step = TextStep | ButtonStep

Results = dict[str, str]


def describe(step: Any) -> str:
    if isinstance(step, TextStep):
        return "text"
    if isinstance(step, ButtonStep):
        return "button"
    return "unknown"
