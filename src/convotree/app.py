"""Application wiring: transport, bus, dispatcher and features."""

from __future__ import annotations

from loguru import logger

from convotree.bus import EventBus
from convotree.config import Settings
from convotree.dispatcher import ConversationDispatcher
from convotree.error_log import ErrorRecorder
from convotree.errors import ConfigurationError
from convotree.features.students import (
    Student,
    StudentRepository,
    create_student_repository,
    register_student_conversations,
)
from convotree.i18n import Translator
from convotree.session import SessionStore
from convotree.transport.telegram import TelegramConfig, TelegramTransport

DEMO_STUDENTS = [
    Student(id=1, first_name="Amina", last_name="Yusuf", group="A", birth_year=2012),
    Student(id=2, first_name="Bilal", last_name="Hassan", group="A", birth_year=2011),
    Student(id=3, first_name="Khadija", last_name="Omar", group="B", birth_year=2013),
    Student(id=4, first_name="Yusuf", last_name="Ali", group="B", birth_year=2012),
    Student(id=5, first_name="Maryam", last_name="Saleh", group="C", birth_year=2010),
]


def build_dispatcher(
    settings: Settings,
    bus: EventBus,
    transport: TelegramTransport,
    repository: StudentRepository,
) -> ConversationDispatcher:
    translator = Translator(default_language=settings.default_language)
    error_recorder = ErrorRecorder(settings.error_log_path) if settings.error_log_path else None
    dispatcher = ConversationDispatcher(
        transport,
        sessions=SessionStore(default_language=settings.default_language),
        translator=translator,
        restart_command=settings.restart_command,
        error_recorder=error_recorder,
    )
    register_student_conversations(dispatcher, repository)
    dispatcher.attach(bus)
    return dispatcher


async def serve(settings: Settings, *, seed: bool = False) -> None:
    """Run the Telegram bot until cancelled."""
    if not settings.telegram_token:
        raise ConfigurationError("CONVOTREE_TELEGRAM_TOKEN is not set")

    bus = EventBus()
    transport = TelegramTransport(
        bus,
        TelegramConfig(token=settings.telegram_token, allow_from=set(settings.telegram_allow_from)),
    )
    repository = create_student_repository(DEMO_STUDENTS if seed else None)
    dispatcher = build_dispatcher(settings, bus, transport, repository)
    logger.info("app.start conversations={} students={}", len(dispatcher.conversations), len(repository))
    try:
        await transport.start()
    finally:
        await dispatcher.stop()
        await transport.stop()
        logger.info("app.stopped")
