"""
Generation-token guard against stale asynchronous results.

Every state-mutating roster operation advances the generation. A fetched
page carries the generation that was current when its request started;
it may be rendered only if that generation is still current when the
response arrives, and only once.

Usage:
    guard = RenderGuard()
    generation = guard.advance()
    page = await fetch(...)          # stamped with ``generation``
    if guard.accept(page):
        render(page)
"""

import logging
from typing import Optional

from roster.schemas.roster_schema import RosterPage

logger = logging.getLogger(__name__)


class RenderGuard:
    """Owns the generation counter and decides which pages may render."""

    def __init__(self) -> None:
        self._generation = 0
        self._rendered: Optional[int] = None

    @property
    def current(self) -> int:
        return self._generation

    def advance(self) -> int:
        """Start a new generation; any in-flight result becomes stale."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def accept(self, page: RosterPage) -> bool:
        """Return True if ``page`` may be rendered; False means discard it."""
        if page.generation != self._generation:
            logger.debug(
                "Discarding stale page (generation %d, current %d)",
                page.generation, self._generation,
            )
            return False
        if self._rendered == page.generation:
            logger.debug("Generation %d already rendered", page.generation)
            return False
        self._rendered = page.generation
        return True
