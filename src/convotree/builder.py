"""Fluent construction of step graphs."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from convotree.context import maybe_await
from convotree.errors import EmptyBuilderError, StepGraphError
from convotree.steps import (
    ROW_BREAK,
    ButtonOption,
    ButtonStep,
    Deferred,
    NextStep,
    SelectHook,
    Step,
    StepResult,
    TextStep,
    Validator,
)

if TYPE_CHECKING:
    from convotree.runner import Conversation, SuccessCallback

type StepFactory = Callable[[Step | None], Step]
type ButtonSpec = Mapping[str, Any] | str

_FALLTHROUGH = object()


class ConversationBuilder:
    """Builder for linear or branching conversations.

    Steps are recorded as factories and folded right to left by `compile`, so
    each factory receives the step added after it as its fallthrough
    successor and may override it.
    """

    def __init__(self) -> None:
        self._factories: list[StepFactory] = []

    def __len__(self) -> int:
        return len(self._factories)

    def text(
        self,
        key: str,
        prompt: str,
        *,
        prompt_params: Mapping[str, str] | None = None,
        validate: Validator | None = None,
        error: str | None = None,
        action: Callable[[str], Awaitable[None] | None] | None = None,
        next: Step | Callable[[str], StepResult] | None = None,
    ) -> ConversationBuilder:
        def factory(fallthrough: Step | None) -> Step:
            async def transition(value: str) -> Step | None:
                if action is not None:
                    await maybe_await(action(value))
                if next is None:
                    return fallthrough
                if callable(next):
                    return await maybe_await(next(value))
                return next

            return TextStep(
                key=key,
                prompt=prompt,
                next=transition,
                prompt_params=prompt_params,
                validate=validate,
                error=error,
            )

        self._factories.append(factory)
        return self

    def menu(
        self,
        key: str,
        prompt: str,
        buttons: Sequence[ButtonSpec],
        *,
        prompt_params: Mapping[str, str] | None = None,
        in_place: bool = False,
        on_select: SelectHook | None = None,
    ) -> ConversationBuilder:
        def factory(fallthrough: Step | None) -> Step:
            options = [_build_option(button, fallthrough) for button in buttons]
            return ButtonStep(
                key=key,
                prompt=prompt,
                options=options,
                prompt_params=prompt_params,
                on_select=on_select,
                in_place=in_place,
            )

        self._factories.append(factory)
        return self

    def add(self, step_or_factory: Step | StepFactory) -> ConversationBuilder:
        if isinstance(step_or_factory, TextStep | ButtonStep):
            step = step_or_factory
            self._factories.append(lambda _fallthrough: step)
        else:
            self._factories.append(step_or_factory)
        return self

    def compile(self, next: Step | None = None) -> Step:
        current = next
        for factory in reversed(self._factories):
            current = factory(current)
        if current is None or not self._factories:
            raise EmptyBuilderError("conversation builder cannot be empty")
        return current

    def build(
        self,
        on_success: SuccessCallback,
        *,
        success_message: str = "operation_completed",
        failure_message: str = "operation_failed",
    ) -> Conversation:
        from convotree.runner import create_tree_conversation

        return create_tree_conversation(
            self.compile(),
            on_success,
            success_message=success_message,
            failure_message=failure_message,
        )


def _build_option(button: ButtonSpec, fallthrough: Step | None) -> ButtonOption:
    if button == ROW_BREAK:
        return ButtonOption.row_break()
    if isinstance(button, str):
        raise StepGraphError(f"unknown button marker {button!r}")

    target = button.get("next", _FALLTHROUGH)
    successor: NextStep
    if target is _FALLTHROUGH:
        successor = fallthrough
    elif isinstance(target, ConversationBuilder):
        successor = target.compile()
    elif target is None or isinstance(target, TextStep | ButtonStep | Deferred):
        successor = target
    elif callable(target):
        successor = Deferred(target)
    else:
        raise StepGraphError(f"unsupported successor for button {button.get('data')!r}: {target!r}")

    return ButtonOption(
        text=str(button["text"]),
        data=str(button["data"]),
        next=successor,
        url=button.get("url"),
        literal=bool(button.get("literal", False)),
    )
