"""Game session: actions, timers and persistence wiring."""

from clicker.modules.session.engine import ActionResult, GameSession, Outcome

__all__ = ["ActionResult", "GameSession", "Outcome"]
