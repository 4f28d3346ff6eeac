"""Core flashcard engine.

Modules:
- questions: Question / QuestionSet model and header normalization
- progress: ProgressRecord and its update rule
- progress_store: Cached, persisted progress per question set
- question_filter: Review filter criteria and predicates
- app_state: Selected set shared by every session
- study_session: Study and Review sessions
- exam_session: Timed exam and scoring
- stats: Dashboard aggregates
- keymap: Keyboard dispatch tables
- question_importer: Spreadsheet import
"""

__all__ = [
    "questions",
    "progress",
    "progress_store",
    "question_filter",
    "app_state",
    "study_session",
    "exam_session",
    "stats",
    "keymap",
    "question_importer",
]
