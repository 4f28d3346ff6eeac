"""Estudio - flashcard study engine.

Study, Review and Exam modes over spreadsheet-imported question sets,
with per-question confidence progress.
"""

__version__ = "0.1.0"
