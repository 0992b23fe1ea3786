from roster.presentation.count_recovery import recover_total
from roster.presentation.note_classifier import NoteKind, classify
from roster.presentation.page_controller import RosterPageController
from roster.presentation.record_mapper import from_stored
from roster.presentation.render_guard import RenderGuard

__all__ = [
    "RosterPageController",
    "RenderGuard",
    "recover_total",
    "classify",
    "NoteKind",
    "from_stored",
]
