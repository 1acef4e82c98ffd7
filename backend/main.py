from __future__ import annotations

from crashgame.application import app

__all__ = ["app"]
