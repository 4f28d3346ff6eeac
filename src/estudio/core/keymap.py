"""Keyboard input mapped to session operations.

The mapping tables are plain dicts so they can be inspected and tested
without any terminal or UI involved.
"""

from __future__ import annotations

from enum import Enum, auto

from estudio.core.exam_session import ExamSession
from estudio.core.study_session import StudySession
from estudio.utils.validators import parse_confidence


class KeyAction(Enum):
    """Acciones disponibles desde el teclado."""

    REVEAL_OR_NEXT = auto()  # Mostrar respuesta, o avanzar si ya se ve
    SHOW_ANSWER = auto()
    NEXT = auto()
    PREV = auto()
    CONFIDENCE = auto()  # 1-5
    BOOKMARK = auto()
    SKIP = auto()
    TOGGLE_PAUSE = auto()
    FINISH = auto()
    QUIT = auto()


# Raw key names accepted from browsers and terminals
KEY_ALIASES: dict[str, str] = {
    "arrowright": "right",
    ">": "right",
    "n": "right",
    "arrowleft": "left",
    "<": "left",
    " ": "space",
    "": "enter",
    "return": "enter",
    "\n": "enter",
    "\r": "enter",
    "escape": "q",
    "esc": "q",
}

CONFIDENCE_KEYS = ("1", "2", "3", "4", "5")

STUDY_KEYMAP: dict[str, KeyAction] = {
    "right": KeyAction.REVEAL_OR_NEXT,
    "space": KeyAction.REVEAL_OR_NEXT,
    "left": KeyAction.PREV,
    "enter": KeyAction.SHOW_ANSWER,
    "b": KeyAction.BOOKMARK,
    "q": KeyAction.QUIT,
    **{k: KeyAction.CONFIDENCE for k in CONFIDENCE_KEYS},
}

EXAM_KEYMAP: dict[str, KeyAction] = {
    "space": KeyAction.SHOW_ANSWER,
    "enter": KeyAction.SHOW_ANSWER,
    "s": KeyAction.SKIP,
    "p": KeyAction.TOGGLE_PAUSE,
    "f": KeyAction.FINISH,
    "q": KeyAction.QUIT,
    **{k: KeyAction.CONFIDENCE for k in CONFIDENCE_KEYS},
}


def normalize_key(raw: str) -> str:
    """Canonical key name ("ArrowRight" -> "right", " " -> "space")."""
    if raw in KEY_ALIASES:
        return KEY_ALIASES[raw]
    key = raw.strip().lower()
    return KEY_ALIASES.get(key, key)


def dispatch_study_key(session: StudySession, raw: str) -> KeyAction | None:
    """Apply a key to a Study/Review session.

    Confidence keys only act while the answer is shown.

    Returns:
        The action applied, or None for unmapped / inactive keys
    """
    key = normalize_key(raw)
    action = STUDY_KEYMAP.get(key)

    if action is KeyAction.REVEAL_OR_NEXT:
        if session.answer_shown:
            session.next()
        else:
            session.show_answer()
    elif action is KeyAction.SHOW_ANSWER:
        session.show_answer()
    elif action is KeyAction.PREV:
        session.prev()
    elif action is KeyAction.BOOKMARK:
        session.toggle_bookmark()
    elif action is KeyAction.CONFIDENCE:
        if not session.answer_shown:
            return None
        session.submit_confidence(parse_confidence(key))

    return action


def dispatch_exam_key(exam: ExamSession, raw: str) -> KeyAction | None:
    """Apply a key to an exam in progress.

    Only pause/resume, finish and quit act while paused; confidence keys
    need the answer shown.

    Returns:
        The action applied, or None for unmapped / inactive keys
    """
    key = normalize_key(raw)
    action = EXAM_KEYMAP.get(key)

    if action is None:
        return None

    if not exam.is_running and action not in (
        KeyAction.TOGGLE_PAUSE,
        KeyAction.FINISH,
        KeyAction.QUIT,
    ):
        return None

    if action is KeyAction.SHOW_ANSWER:
        exam.show_answer()
    elif action is KeyAction.SKIP:
        exam.skip()
    elif action is KeyAction.TOGGLE_PAUSE:
        exam.toggle_pause()
    elif action is KeyAction.FINISH:
        exam.finish()
    elif action is KeyAction.CONFIDENCE:
        if not exam.answer_shown:
            return None
        exam.answer(parse_confidence(key))

    return action
