"""Paginated browsing and selection over a fixed list of items."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from convotree.context import ConversationContext
from convotree.steps import CANCEL
from convotree.transport.events import ButtonEvent, InlineButton, Keyboard, MessageRef, TextEvent

DEFAULT_PAGE_SIZE = 10
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 50
PAGE_SIZE_STEP = 5
MAX_BUTTON_LABEL = 50

SELECT_PREFIX = "select_"
PAGE_PREV = "page_prev"
PAGE_NEXT = "page_next"
SIZE_DEC = "size_dec"
SIZE_INC = "size_inc"


@dataclass
class PaginationState[T]:
    """Window over a snapshot of items.

    Keeps `0 <= page < total_pages` and `min_page_size <= page_size <= max_page_size`
    through every navigation or resize.
    """

    items: Sequence[T]
    page_size: int = DEFAULT_PAGE_SIZE
    min_page_size: int = MIN_PAGE_SIZE
    max_page_size: int = MAX_PAGE_SIZE
    page_size_step: int = PAGE_SIZE_STEP
    page: int = 0

    def __post_init__(self) -> None:
        self.page_size = max(self.min_page_size, min(self.max_page_size, self.page_size))
        self._clamp()

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.items) / self.page_size))

    @property
    def start(self) -> int:
        return self.page * self.page_size

    def visible(self) -> list[tuple[int, T]]:
        end = min(self.start + self.page_size, len(self.items))
        return [(index, self.items[index]) for index in range(self.start, end)]

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages - 1

    @property
    def can_shrink(self) -> bool:
        return self.page_size > self.min_page_size

    @property
    def can_grow(self) -> bool:
        return self.page_size < self.max_page_size and self.page_size < len(self.items)

    def previous(self) -> None:
        if self.has_previous:
            self.page -= 1

    def next(self) -> None:
        if self.has_next:
            self.page += 1

    def shrink(self) -> None:
        self.page_size = max(self.min_page_size, self.page_size - self.page_size_step)
        self._clamp()

    def grow(self) -> None:
        self.page_size = min(self.max_page_size, self.page_size + self.page_size_step, max(len(self.items), 1))
        self.page_size = max(self.min_page_size, self.page_size)
        self._clamp()

    def apply(self, action: str) -> bool:
        """Apply a navigation or resize payload; return False if it is not one."""
        handlers = {
            PAGE_PREV: self.previous,
            PAGE_NEXT: self.next,
            SIZE_DEC: self.shrink,
            SIZE_INC: self.grow,
        }
        handler = handlers.get(action)
        if handler is None:
            return False
        handler()
        return True

    def _clamp(self) -> None:
        self.page = max(0, min(self.page, self.total_pages - 1))


def _default_item_id(_item: object, index: int) -> str:
    return f"item_{index}"


@dataclass
class PaginationOptions[T]:
    items: Sequence[T]
    render_item: Callable[[T, int], str]
    header: str = ""
    selectable: bool = False
    get_item_id: Callable[[T, int], str] = _default_item_id
    initial_page_size: int = DEFAULT_PAGE_SIZE
    min_page_size: int = MIN_PAGE_SIZE
    max_page_size: int = MAX_PAGE_SIZE
    page_size_step: int = PAGE_SIZE_STEP
    lang: str | None = None


@dataclass(frozen=True)
class PaginationResult[T]:
    selected_item: T | None
    cancelled: bool
    restarted: bool = False


@dataclass
class _PageView[T]:
    ctx: ConversationContext
    options: PaginationOptions[T]
    state: PaginationState[T]
    item_ids: dict[str, T] = field(default_factory=dict)

    def t(self, key: str, params: dict[str, object] | None = None) -> str:
        return self.ctx.translator.translate(key, self.options.lang or self.ctx.lang, params)

    def body(self) -> str:
        lines: list[str] = []
        if self.options.header:
            lines.extend([self.options.header, ""])
        lines.extend(self.options.render_item(item, index) for index, item in self.state.visible())
        lines.append("")
        lines.append(self.t("page_info", {"current": self.state.page + 1, "total": self.state.total_pages}))
        return "\n".join(lines)

    def keyboard(self) -> Keyboard:
        keyboard = Keyboard()
        if self.options.selectable:
            for index, item in self.state.visible():
                label = self.options.render_item(item, index)
                if len(label) > MAX_BUTTON_LABEL:
                    label = label[: MAX_BUTTON_LABEL - 3] + "..."
                keyboard.button(label, SELECT_PREFIX + self.options.get_item_id(item, index)).row()

        navigation: list[InlineButton] = []
        if self.state.has_previous:
            navigation.append(InlineButton(self.t("previous"), PAGE_PREV))
        if self.state.has_next:
            navigation.append(InlineButton(self.t("next"), PAGE_NEXT))
        if self.state.can_shrink:
            navigation.append(InlineButton(self.t("page_size_dec"), SIZE_DEC))
        if self.state.can_grow:
            navigation.append(InlineButton(self.t("page_size_inc"), SIZE_INC))
        for position, button in enumerate(navigation):
            if position and position % 2 == 0:
                keyboard.row()
            keyboard.button(button.text, button.data or "")

        keyboard.row().button(self.t("cancel"), CANCEL)
        return keyboard


async def paginate[T](ctx: ConversationContext, options: PaginationOptions[T]) -> PaginationResult[T]:
    """Show `options.items` page by page until the user selects an item or cancels.

    Exactly one paginated message is live at a time: navigation edits it in
    place, falling back to a fresh message when the edit fails, and it is
    deleted once the helper returns. The restart command also ends it, after
    re-greeting the chat.
    """
    lang = options.lang or ctx.lang
    if not options.items:
        await ctx.reply(ctx.translator.translate("no_results", lang))
        return PaginationResult(selected_item=None, cancelled=True)

    state = PaginationState(
        items=options.items,
        page_size=options.initial_page_size,
        min_page_size=options.min_page_size,
        max_page_size=options.max_page_size,
        page_size_step=options.page_size_step,
    )
    view = _PageView(ctx, options, state)
    view.item_ids = {options.get_item_id(item, index): item for index, item in enumerate(options.items)}

    message = await ctx.reply(view.body(), view.keyboard())
    ctx.log.debug("pagination.start items={} page_size={}", len(options.items), state.page_size)

    while True:
        event = await ctx.wait()
        if isinstance(event, TextEvent) and event.text.strip() == ctx.restart_command:
            ctx.log.info("pagination.restart")
            await _delete_quietly(ctx, message)
            await ctx.greet()
            return PaginationResult(selected_item=None, cancelled=True, restarted=True)
        if not isinstance(event, ButtonEvent):
            continue
        if not event.data:
            await ctx.answer(event)
            continue
        await ctx.answer(event)

        if event.data.startswith(SELECT_PREFIX):
            item_id = event.data.removeprefix(SELECT_PREFIX)
            if item_id in view.item_ids:
                await _delete_quietly(ctx, message)
                return PaginationResult(selected_item=view.item_ids[item_id], cancelled=False)
            continue

        if event.data == CANCEL:
            await _delete_quietly(ctx, message)
            return PaginationResult(selected_item=None, cancelled=True)

        if not state.apply(event.data):
            ctx.log.debug("pagination.unknown_action data={}", event.data)
            continue

        try:
            await ctx.edit(message, view.body(), view.keyboard())
        except Exception:
            ctx.log.opt(exception=True).warning("pagination.edit_failed")
            await _delete_quietly(ctx, message)
            message = await ctx.reply(view.body(), view.keyboard())


async def _delete_quietly(ctx: ConversationContext, message: MessageRef) -> None:
    try:
        await ctx.delete(message)
    except Exception:
        ctx.log.opt(exception=True).debug("pagination.delete_failed")
