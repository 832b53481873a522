from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace

from pysay.infrastructure.platform.factory import ENGINES

DEFAULT_LOG_DIR = "logs"


@dataclass(frozen=True)
class SpeechConfig:
    engine: str | None = None
    executable: str | None = None
    voice: str | None = None
    speed: float | None = None


@dataclass(frozen=True)
class AppConfig:
    speech: SpeechConfig
    log_dir: str = DEFAULT_LOG_DIR
    save_logs: bool = False

    @staticmethod
    def from_env() -> "AppConfig":
        engine = (os.getenv("PYSAY_ENGINE") or "").strip().lower() or None
        if engine is not None and engine not in ENGINES:
            raise ValueError(
                f"PYSAY_ENGINE must be one of {', '.join(ENGINES)} (got '{engine}')."
            )

        speed_raw = os.getenv("PYSAY_SPEED")
        speed: float | None = None
        if speed_raw:
            try:
                speed = float(speed_raw)
            except ValueError as exc:
                raise ValueError("PYSAY_SPEED must be a number (1.0 = normal).") from exc
            if not math.isfinite(speed) or speed <= 0:
                raise ValueError("PYSAY_SPEED must be a finite number greater than 0.")

        save_logs = (os.getenv("PYSAY_SAVE_LOGS") or "").strip().lower() in {"1", "true", "yes", "on"}

        return AppConfig(
            speech=SpeechConfig(
                engine=engine,
                executable=os.getenv("PYSAY_EXECUTABLE") or None,
                voice=os.getenv("PYSAY_VOICE") or None,
                speed=speed,
            ),
            log_dir=os.getenv("PYSAY_LOG_DIR") or DEFAULT_LOG_DIR,
            save_logs=save_logs,
        )

    def with_overrides(
        self,
        *,
        engine: str | None = None,
        executable: str | None = None,
        voice: str | None = None,
        speed: float | None = None,
    ) -> "AppConfig":
        """Return a copy where the given (non-None) values replace config values."""

        speech = replace(
            self.speech,
            engine=engine.lower() if engine else self.speech.engine,
            executable=executable or self.speech.executable,
            voice=voice or self.speech.voice,
            speed=speed if speed is not None else self.speech.speed,
        )
        return replace(self, speech=speech)
