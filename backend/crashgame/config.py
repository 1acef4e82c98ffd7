from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"
        self.port = int(os.getenv("PORT", "3000"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        self.cors_origins = tuple(
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ) or ("*",)
        self.countdown_seconds = max(1, int(os.getenv("COUNTDOWN_SECONDS", "5")))
        self.countdown_tick_ms = max(10, int(os.getenv("COUNTDOWN_TICK_MS", "1000")))
        self.multiplier_tick_ms = max(10, int(os.getenv("MULTIPLIER_TICK_MS", "50")))
        self.reset_delay_ms = max(0, int(os.getenv("RESET_DELAY_MS", "5000")))
        self.crash_point_min = float(os.getenv("CRASH_POINT_MIN", "5.0"))
        self.crash_point_max = max(
            self.crash_point_min,
            float(os.getenv("CRASH_POINT_MAX", "30.0")),
        )
        self.multiplier_growth_rate = float(os.getenv("MULTIPLIER_GROWTH_RATE", "0.05"))
        self.history_limit = max(1, int(os.getenv("HISTORY_LIMIT", "20")))
        self.outbox_limit = max(1, int(os.getenv("OUTBOX_LIMIT", "256")))


settings = Settings()
