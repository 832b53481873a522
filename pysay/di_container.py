from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pysay.application.port.command_builder import CommandBuilder
from pysay.application.port.process_spawner import ProcessSpawner
from pysay.application.speech_session import SpeechSession
from pysay.config import AppConfig
from pysay.infrastructure.platform.factory import create_command_builder
from pysay.infrastructure.process.asyncio_spawner import AsyncioProcessSpawner
from pysay.utils.logger import Logger


@dataclass(frozen=True)
class AppContainer:
    config: AppConfig
    logger: Logger
    builder: CommandBuilder
    spawner: ProcessSpawner
    session: SpeechSession


def build_container(
    config: AppConfig,
    *,
    logger: Logger | None = None,
    builder: CommandBuilder | None = None,
    spawner: ProcessSpawner | None = None,
) -> AppContainer:
    logger = logger or Logger(log_dir=Path(config.log_dir))
    builder = builder or create_command_builder(
        config.speech.engine,
        executable=config.speech.executable,
    )
    spawner = spawner or AsyncioProcessSpawner()

    session = SpeechSession(builder, spawner=spawner, logger=logger)
    logger.log(f"Using speech engine '{builder.name}'.")

    return AppContainer(
        config=config,
        logger=logger,
        builder=builder,
        spawner=spawner,
        session=session,
    )
