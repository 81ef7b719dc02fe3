"""Step graph interpreter.

A conversation walks one step graph for one chat. It renders each step,
suspends on `ConversationContext.wait` for the next event, and collects the
answers into a results mapping until a step resolves to None.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from convotree.context import ConversationContext, maybe_await
from convotree.errors import ConvotreeError, StepGraphError
from convotree.steps import CANCEL, ButtonOption, ButtonStep, Results, Step, TextStep, describe, resolve_step
from convotree.transport.events import ButtonEvent, Keyboard, MediaEvent, MessageRef, TextEvent


class ConversationOutcome(StrEnum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    HANDOFF = "handoff"


@dataclass(frozen=True)
class EnterConversation:
    """Returned by a success callback to continue into another named conversation."""

    name: str


type SuccessCallback = Callable[[Results], Any]
type Conversation = Callable[[ConversationContext], Awaitable[ConversationOutcome]]


class ConversationCancelled(ConvotreeError):
    """Raised inside a traversal once cancel teardown has been rendered."""


@dataclass
class Traversal:
    """State owned by one conversation instance."""

    ctx: ConversationContext
    results: Results = field(default_factory=dict)
    in_place: MessageRef | None = None
    menu: MessageRef | None = None


class TreeConversation:
    """Runs a compiled step graph against a live chat."""

    def __init__(
        self,
        entry: Step,
        on_success: SuccessCallback,
        *,
        success_message: str = "operation_completed",
        failure_message: str = "operation_failed",
    ) -> None:
        self.entry = entry
        self.on_success = on_success
        self.success_message = success_message
        self.failure_message = failure_message

    async def __call__(self, ctx: ConversationContext) -> ConversationOutcome:
        started = time.monotonic()
        run = Traversal(ctx)
        ctx.log.info("conversation.start entry={}", describe(self.entry))
        try:
            step: Step | None = self.entry
            while step is not None:
                if isinstance(step, TextStep):
                    step = await self._text_prompt(run, step)
                elif isinstance(step, ButtonStep):
                    step = await self._button_prompt(run, step)
                else:
                    raise StepGraphError(f"unknown step type: {step!r}")
            return await self._complete(run, started)
        except ConversationCancelled:
            run.in_place = None
            return ConversationOutcome.CANCELLED
        except Exception as error:
            await self._fail(run, error, started)
            return ConversationOutcome.FAILED

    async def _text_prompt(self, run: Traversal, step: TextStep) -> Step | None:
        ctx = run.ctx
        ctx.log.debug("conversation.step.text key={}", step.key)
        await ctx.reply(ctx.t(step.prompt, step.prompt_params))

        while True:
            event = await ctx.wait()
            if isinstance(event, ButtonEvent):
                await ctx.answer(event, ctx.t("please_send_text"))
                continue
            if isinstance(event, MediaEvent):
                ctx.log.debug("conversation.text.non_text key={} kind={}", step.key, event.kind)
                await ctx.reply(ctx.t("please_send_text"))
                continue

            text = event.text
            if text.strip() == ctx.restart_command:
                ctx.log.info("conversation.restart key={}", step.key)
                await ctx.cancel_and_greet()
                raise ConversationCancelled(step.key)
            if step.validate is not None and not await maybe_await(step.validate(text)):
                ctx.log.debug("conversation.text.invalid key={} length={}", step.key, len(text))
                if step.error:
                    await ctx.reply(ctx.t(step.error))
                continue
            break

        ctx.log.debug("conversation.text.accepted key={} length={}", step.key, len(text))
        run.results[step.key] = text.strip()
        next_step = await maybe_await(step.next(text))
        run.in_place = None
        return next_step

    async def _button_prompt(self, run: Traversal, step: ButtonStep) -> Step | None:
        ctx = run.ctx
        ctx.log.debug("conversation.step.button key={} options={}", step.key, len(step.options))
        await self._render_menu(run, step)

        while True:
            event = await ctx.wait()
            if isinstance(event, TextEvent) and event.text.strip() == ctx.restart_command:
                ctx.log.info("conversation.restart key={}", step.key)
                await self._discard_menu(run, None)
                await ctx.greet()
                raise ConversationCancelled(step.key)
            if not isinstance(event, ButtonEvent):
                await ctx.reply(ctx.t("please_select_option"))
                continue
            if not event.data:
                await ctx.answer(event, ctx.t("please_select_option"))
                continue
            if event.data == CANCEL:
                await self._cancel(run, step, event)
                raise ConversationCancelled(step.key)

            option = step.find(event.data)
            if option is None:
                ctx.log.warning("conversation.button.invalid key={} data={}", step.key, event.data)
                await ctx.answer(event, ctx.t("invalid_selection"))
                continue
            break

        ctx.log.debug("conversation.button.selected key={} data={}", step.key, option.data)
        await ctx.answer(event, f"{ctx.t('you_selected')} {_label(ctx, option)}")
        try:
            if step.on_select is not None:
                await maybe_await(step.on_select(option.data, ctx, event))
            run.results[step.key] = option.data
            next_step = await resolve_step(option.next)
        except Exception:
            await self._discard_menu(run, event)
            raise

        keeps_message = run.in_place is not None and isinstance(next_step, ButtonStep) and next_step.in_place
        if not keeps_message:
            await self._discard_menu(run, event)
        return next_step

    async def _render_menu(self, run: Traversal, step: ButtonStep) -> None:
        ctx = run.ctx
        keyboard = _keyboard(ctx, step.options)
        text = ctx.t(step.prompt, step.prompt_params)

        if step.in_place and run.in_place is not None:
            try:
                await ctx.edit(run.in_place, text, keyboard)
            except Exception:
                ctx.log.opt(exception=True).warning("conversation.menu.edit_failed key={}", step.key)
                text = f"{text}\n\n{ctx.t('tap_button_hint')}"
            else:
                run.menu = run.in_place
                return

        run.menu = await ctx.reply(text, keyboard)
        run.in_place = run.menu if step.in_place else None

    async def _discard_menu(self, run: Traversal, event: ButtonEvent | None) -> None:
        target = run.in_place
        if target is None and event is not None:
            target = event.message
        if target is None:
            target = run.menu
        run.in_place = None
        run.menu = None
        if target is None:
            return
        try:
            await run.ctx.delete(target)
        except Exception:
            run.ctx.log.opt(exception=True).warning("conversation.menu.delete_failed")

    async def _cancel(self, run: Traversal, step: ButtonStep, event: ButtonEvent) -> None:
        ctx = run.ctx
        ctx.log.info("conversation.cancelled key={}", step.key)
        try:
            await ctx.answer(event)
        except Exception:
            ctx.log.opt(exception=True).warning("conversation.cancel.answer_failed")
        await self._discard_menu(run, event)
        await ctx.reply(ctx.t("operation_cancelled"))
        await ctx.greet()

    async def _complete(self, run: Traversal, started: float) -> ConversationOutcome:
        ctx = run.ctx
        await ctx.reply(ctx.t("processing"))
        callback_started = time.monotonic()
        result = await maybe_await(self.on_success(run.results))
        callback_ms = int((time.monotonic() - callback_started) * 1000)

        if isinstance(result, EnterConversation):
            ctx.session.pending_conversation = result.name
            ctx.log.info("conversation.handoff target={}", result.name)
            return ConversationOutcome.HANDOFF

        await ctx.reply(ctx.t(self.success_message))
        ctx.log.info(
            "conversation.completed results={} callback_ms={} total_ms={}",
            len(run.results),
            callback_ms,
            int((time.monotonic() - started) * 1000),
        )
        return ConversationOutcome.COMPLETED

    async def _fail(self, run: Traversal, error: Exception, started: float) -> None:
        ctx = run.ctx
        elapsed_ms = int((time.monotonic() - started) * 1000)
        keys = list(run.results)
        ctx.log.opt(exception=error).error("conversation.error keys={} total_ms={}", keys, elapsed_ms)
        if ctx.error_recorder is not None:
            try:
                ctx.error_recorder.record(
                    chat_id=ctx.chat_id,
                    user_id=ctx.user_id,
                    error=error,
                    result_keys=keys,
                    elapsed_ms=elapsed_ms,
                )
            except Exception:
                ctx.log.opt(exception=True).error("conversation.error_record_failed")
        try:
            await ctx.reply(ctx.t(self.failure_message))
        except Exception:
            ctx.log.opt(exception=True).error("conversation.failure_reply_failed")


def _label(ctx: ConversationContext, option: ButtonOption) -> str:
    return option.text if option.literal else ctx.t(option.text)


def _keyboard(ctx: ConversationContext, options: tuple[ButtonOption, ...] | list[ButtonOption]) -> Keyboard:
    keyboard = Keyboard()
    for option in options:
        if option.is_row_break:
            keyboard.row()
        elif option.url:
            keyboard.url(_label(ctx, option), option.url)
        else:
            keyboard.button(_label(ctx, option), option.data)
    return keyboard


def create_tree_conversation(
    entry: Step,
    on_success: SuccessCallback,
    *,
    success_message: str = "operation_completed",
    failure_message: str = "operation_failed",
) -> TreeConversation:
    return TreeConversation(
        entry,
        on_success,
        success_message=success_message,
        failure_message=failure_message,
    )
