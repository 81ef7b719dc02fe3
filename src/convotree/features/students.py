"""Student record conversations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from convotree.builder import ConversationBuilder
from convotree.context import ConversationContext
from convotree.pagination import PaginationOptions, paginate
from convotree.records import InMemoryRepository
from convotree.runner import Conversation, ConversationOutcome, EnterConversation
from convotree.selection import make_selection_node
from convotree.steps import CANCEL, ROW_BREAK, ButtonOption, ButtonStep, Results, Step

if TYPE_CHECKING:
    from convotree.dispatcher import ConversationDispatcher


@dataclass(frozen=True)
class Student:
    id: int
    first_name: str
    last_name: str
    group: str
    birth_year: int

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def search_text(self) -> str:
        return f"{self.first_name} {self.last_name} {self.group}"


type StudentRepository = InMemoryRepository[Student]

FIELD_LABELS = {
    "first_name": "field_first_name",
    "last_name": "field_last_name",
    "group": "field_group",
    "birth_year": "field_birth_year",
}


def create_student_repository(students: list[Student] | None = None) -> StudentRepository:
    repository: StudentRepository = InMemoryRepository(id_of=lambda s: s.id, text_of=Student.search_text)
    for student in students or []:
        repository.add(student)
    return repository


def is_present(text: str) -> bool:
    return bool(text.strip())


def is_birth_year(text: str) -> bool:
    value = text.strip()
    return len(value) == 4 and value.isdigit()


def student_card(ctx: ConversationContext, student: Student) -> str:
    return ctx.t(
        "student_card",
        {"name": student.full_name, "group": student.group, "birth_year": student.birth_year},
    )


def students_menu() -> Conversation:
    """Entry menu that hands off to the chosen student conversation."""
    builder = ConversationBuilder().menu(
        "action",
        "students_menu",
        [
            {"text": "student_create", "data": "create", "next": None},
            {"text": "student_update", "data": "update", "next": None},
            ROW_BREAK,
            {"text": "student_delete", "data": "delete", "next": None},
            {"text": "student_browse", "data": "browse", "next": None},
            ROW_BREAK,
            {"text": "cancel", "data": CANCEL},
        ],
    )

    def on_success(results: Results) -> EnterConversation:
        return EnterConversation(f"student_{results['action']}")

    return builder.build(on_success)


def student_create(repository: StudentRepository) -> Conversation:
    async def conversation(ctx: ConversationContext) -> ConversationOutcome:
        draft: dict[str, str] = {}

        def remember(key: str) -> Callable[[str], None]:
            def action(value: str) -> None:
                draft[key] = value.strip()

            return action

        def confirm(_value: str) -> Step:
            return ButtonStep(
                key="confirm",
                prompt="confirm_student",
                prompt_params=dict(draft),
                options=[
                    ButtonOption(text="confirm_yes", data="save"),
                    ButtonOption(text="cancel", data=CANCEL),
                ],
            )

        def on_success(results: Results) -> None:
            student = Student(
                id=repository.next_id(),
                first_name=results["first_name"],
                last_name=results["last_name"],
                group=results["group"],
                birth_year=int(results["birth_year"]),
            )
            repository.add(student)
            ctx.log.info("students.created id={}", student.id)

        builder = ConversationBuilder()
        for key in ("first_name", "last_name", "group"):
            builder.text(key, f"enter_{key}", validate=is_present, error="value_required", action=remember(key))
        builder.text(
            "birth_year",
            "enter_birth_year",
            validate=is_birth_year,
            error="invalid_birth_year",
            action=remember("birth_year"),
            next=confirm,
        )
        return await builder.build(on_success)(ctx)

    return conversation


def _search_step(next_step: Callable[[str], object]) -> ConversationBuilder:
    return ConversationBuilder().text(
        "query",
        "enter_student_name_search",
        validate=is_present,
        error="value_required",
        next=lambda query: next_step(query.strip()),
    )


def student_update(repository: StudentRepository) -> Conversation:
    async def conversation(ctx: ConversationContext) -> ConversationOutcome:
        picked: dict[str, Student] = {}

        def field_menu(student: Student) -> Step:
            picked["student"] = student
            buttons: list[dict[str, object] | str] = []
            for position, (field, label) in enumerate(FIELD_LABELS.items()):
                if position and position % 2 == 0:
                    buttons.append(ROW_BREAK)
                validate = is_birth_year if field == "birth_year" else is_present
                error = "invalid_birth_year" if field == "birth_year" else "value_required"
                value_step = ConversationBuilder().text("value", "enter_new_value", validate=validate, error=error)
                buttons.append({"text": label, "data": field, "next": value_step})
            buttons.extend([ROW_BREAK, {"text": "cancel", "data": CANCEL}])
            return (
                ConversationBuilder()
                .menu("field", "select_field", buttons, prompt_params={"name": student.full_name})
                .compile()
            )

        node = make_selection_node(
            repository, field_menu, prompt="select_student", label=lambda s: s.full_name, key="student"
        )

        def on_success(results: Results) -> None:
            student = picked["student"]
            field, value = results["field"], results["value"]
            updated = replace(student, **{field: int(value) if field == "birth_year" else value})
            repository.update(updated)
            ctx.log.info("students.updated id={} field={}", student.id, field)

        return await _search_step(node).build(on_success)(ctx)

    return conversation


def student_delete(repository: StudentRepository) -> Conversation:
    async def conversation(ctx: ConversationContext) -> ConversationOutcome:
        picked: dict[str, Student] = {}

        def confirm(student: Student) -> Step:
            picked["student"] = student
            return ButtonStep(
                key="confirm",
                prompt="confirm_delete",
                prompt_params={"name": student.full_name},
                options=[
                    ButtonOption(text="confirm_delete_yes", data="delete"),
                    ButtonOption(text="cancel", data=CANCEL),
                ],
            )

        node = make_selection_node(
            repository, confirm, prompt="select_student", label=lambda s: s.full_name, key="student"
        )

        def on_success(_results: Results) -> None:
            student = picked["student"]
            repository.delete(student.id)
            ctx.log.info("students.deleted id={}", student.id)

        return await _search_step(node).build(on_success)(ctx)

    return conversation


def student_browse(repository: StudentRepository) -> Conversation:
    async def conversation(ctx: ConversationContext) -> ConversationOutcome:
        students = sorted(repository.list(), key=lambda s: (s.group, s.last_name, s.first_name))
        result = await paginate(
            ctx,
            PaginationOptions(
                items=students,
                render_item=lambda s, _index: f"{s.group} / {s.full_name} ({s.birth_year})",
                header=ctx.t("students_title"),
                selectable=True,
                get_item_id=lambda s, _index: str(s.id),
            ),
        )
        if result.restarted:
            return ConversationOutcome.CANCELLED
        if result.selected_item is None:
            if students:
                await ctx.reply(ctx.t("operation_cancelled"))
            return ConversationOutcome.CANCELLED
        await ctx.reply(student_card(ctx, result.selected_item))
        return ConversationOutcome.COMPLETED

    return conversation


def register_student_conversations(dispatcher: ConversationDispatcher, repository: StudentRepository) -> None:
    dispatcher.register("students", students_menu(), command="/students")
    dispatcher.register("student_create", student_create(repository))
    dispatcher.register("student_update", student_update(repository))
    dispatcher.register("student_delete", student_delete(repository))
    dispatcher.register("student_browse", student_browse(repository), command="/browse")
