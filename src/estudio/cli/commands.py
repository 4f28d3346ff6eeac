"""CLI commands for estudio.

Commands:
- import: Import a question set from .xlsx or .csv
- sets: List available question sets
- delete-set: Delete an uploaded set and its progress
- study: Walk through every question of a set
- review: Walk through the questions selected by filters
- exam: Timed exam over a sample of questions
- stats: Progress summary of a set
- reset: Delete all progress of a set
- export: Dump progress of a set as JSON
"""

import json
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from estudio.config.app_config import (
    AppConfig,
    load_app_config,
    resolve_db_path,
    resolve_sets_dir,
)
from estudio.core.app_state import AppState
from estudio.core.exam_session import ExamConfig, ExamSession, format_time
from estudio.core.keymap import KeyAction, dispatch_exam_key, dispatch_study_key
from estudio.core.progress import CONFIDENCE_LABELS
from estudio.core.question_filter import FilterCriteria
from estudio.core.question_importer import QuestionImportError, import_question_set
from estudio.core.questions import (
    ANSWER_LEVEL_LABELS,
    ANSWER_LEVELS,
    BuiltinSetError,
    QuestionSetNotFoundError,
)
from estudio.core.stats import compute_section_stats, compute_stats
from estudio.core.study_session import ReviewSession, StudySession
from estudio.db import question_sets_repository
from estudio.db.database import init_db
from estudio.utils.validators import (
    AmbiguousSetIdError,
    SetNotFoundError,
    resolve_set_id,
)

app = typer.Typer(
    name="estudio",
    help="Flashcards de estudio con seguimiento de confianza y modo examen.",
    no_args_is_help=True,
)

console = Console()

STUDY_HELP = (
    "[dim]Teclas: n/→ siguiente o mostrar · </← anterior · Enter mostrar · "
    "1-5 confianza · b marcar · q salir[/dim]"
)
EXAM_HELP = (
    "[dim]Teclas: Enter mostrar · 1-5 confianza · s saltar · p pausa · "
    "f terminar · q salir[/dim]"
)


def _bootstrap() -> tuple[AppConfig, AppState]:
    """Load config, open the database and build the application state."""
    config = load_app_config()
    init_db(resolve_db_path(config))
    return config, AppState(sets_dir=resolve_sets_dir(config))


def _available_set_ids(state: AppState) -> list[str]:
    return [
        s.set_id for s in question_sets_repository.list_question_sets(state.sets_dir)
    ]


def _resolve_set_id_or_exit(state: AppState, set_prefix: str) -> str:
    """Resolve set_id prefix to full ID, or exit with helpful error."""
    candidates = _available_set_ids(state)
    try:
        return resolve_set_id(set_prefix, candidates)
    except SetNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        if candidates:
            console.print("\nConjuntos disponibles:")
            for c in candidates:
                console.print(f"  - {c}")
        raise typer.Exit(code=1)
    except AmbiguousSetIdError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _select_set_or_exit(state: AppState, set_prefix: str) -> None:
    set_id = _resolve_set_id_or_exit(state, set_prefix)
    try:
        state.select_set(set_id)
    except QuestionSetNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _read_key(prompt: str = "Tecla") -> str:
    return typer.prompt(prompt, default="", show_default=False)


# =============================================================================
# SET MANAGEMENT
# =============================================================================


@app.command(name="import")
def import_set(
    file: str = typer.Argument(..., help="Path to .xlsx or .csv file"),
    set_id: str | None = typer.Option(None, "--id", help="Set id (default: file name slug)"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Import a question set from a spreadsheet."""
    _, state = _bootstrap()
    file_path = Path(file).expanduser().resolve()

    try:
        result = import_question_set(
            file_path, set_id=set_id, name=name, sets_dir=state.sets_dir
        )
    except (QuestionImportError, BuiltinSetError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [dim]set_id:[/dim] {result.set_id}")
    console.print(f"  [dim]nombre:[/dim] {result.name}")


@app.command(name="sets")
def list_sets() -> None:
    """List available question sets."""
    _, state = _bootstrap()
    sets = question_sets_repository.list_question_sets(state.sets_dir)

    if not sets:
        console.print("[yellow]No hay conjuntos de preguntas[/yellow]")
        console.print("  Usa: estudio import <archivo.xlsx>")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Nombre")
    table.add_column("Preguntas", justify="right")
    table.add_column("Tipo", justify="center")
    table.add_column("Creado", style="dim")

    for s in sets:
        table.add_row(
            s.set_id,
            s.name,
            str(s.question_count),
            "incluido" if s.builtin else "subido",
            s.created_at or "-",
        )

    console.print(f"\n[bold]Conjuntos ({len(sets)}):[/bold]\n")
    console.print(table)


@app.command(name="delete-set")
def delete_set(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete an uploaded set and all its progress."""
    _, state = _bootstrap()
    set_id = _resolve_set_id_or_exit(state, set_prefix)

    if not yes and not typer.confirm(
        f"¿Eliminar el conjunto '{set_id}' y todo su progreso?"
    ):
        console.print("[yellow]Cancelado[/yellow]")
        raise typer.Exit(code=0)

    try:
        deleted = question_sets_repository.delete_question_set(
            set_id, sets_dir=state.sets_dir
        )
    except BuiltinSetError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    if not deleted:
        console.print(f"[red]✗ No se pudo eliminar '{set_id}'[/red]")
        raise typer.Exit(code=1)

    state.store.forget(set_id)
    console.print(f"[green]✓ Conjunto eliminado: {set_id}[/green]")


# =============================================================================
# STUDY / REVIEW
# =============================================================================


def _render_card(session: StudySession) -> None:
    question = session.current
    if question is None:
        return

    progress = session.current_progress
    meta = " · ".join(p for p in (question.seccion, question.tema) if p)
    flag = " [yellow]★[/yellow]" if progress.marcada_para_repaso else ""
    seen = f"vista {progress.veces_mostrada} veces"
    if progress.confianza_promedio is not None:
        seen += f" · promedio {progress.confianza_promedio}"

    body = f"[bold]{question.pregunta}[/bold]"
    if session.answer_shown:
        label = ANSWER_LEVEL_LABELS[session.answer_level]
        body += f"\n\n[green]{label}:[/green] {session.current_answer() or '-'}"

    console.print(
        Panel(
            body,
            title=f"#{question.numero} ({session.position}/{session.total}){flag}",
            subtitle=f"{meta} · {seen}" if meta else seen,
            expand=False,
        )
    )
    if session.answer_shown:
        console.print(
            "  "
            + "  ".join(f"[cyan]{k}[/cyan] {v}" for k, v in CONFIDENCE_LABELS.items())
        )


def _run_study_loop(session: StudySession, answer_level: str) -> None:
    """Interactive loop until the user quits."""
    if session.total == 0:
        console.print("[yellow]No hay preguntas que coincidan[/yellow]")
        return

    console.print(STUDY_HELP)
    answered = 0

    while True:
        if session.answer_level != answer_level:
            session.set_answer_level(answer_level)
        _render_card(session)

        key = _read_key()
        was_last = session.is_last
        action = dispatch_study_key(session, key)

        if action is KeyAction.QUIT:
            break
        if action is None:
            console.print(f"[dim]Tecla no válida: {key!r}[/dim]")
            continue
        if action is KeyAction.CONFIDENCE:
            answered += 1
            if was_last:
                console.print("[green]✓ Fin de la lista[/green]")
                break

    console.print(f"\n[bold]Sesión terminada.[/bold] Confianzas registradas: {answered}")


@app.command()
def study(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    random_order: bool | None = typer.Option(
        None, "--random/--sequential", help="Shuffle questions"
    ),
    level: str | None = typer.Option(
        None, "--level", "-l", help="Answer level: super_corta, corta, normal"
    ),
) -> None:
    """Study every question of a set."""
    config, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)

    answer_level = level or config.study.answer_level
    if answer_level not in ANSWER_LEVELS:
        console.print(f"[red]✗ Nivel de respuesta inválido: {answer_level}[/red]")
        raise typer.Exit(code=1)

    session = StudySession(
        state,
        random_order=config.study.random_order if random_order is None else random_order,
    )
    console.print(f"\n[bold]Estudio:[/bold] {state.current_set.name}")
    _run_study_loop(session, answer_level)


@app.command()
def review(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    section: list[str] | None = typer.Option(None, "--section", "-s", help="Section (repeatable)"),
    topic: list[str] | None = typer.Option(None, "--topic", "-t", help="Topic (repeatable)"),
    min_confidence: int = typer.Option(1, "--min", min=1, max=5, help="Minimum last confidence"),
    max_confidence: int = typer.Option(5, "--max", min=1, max=5, help="Maximum last confidence"),
    include_unrated: bool = typer.Option(
        True, "--unrated/--no-unrated", help="Include questions without confidence"
    ),
    max_views: int | None = typer.Option(None, "--max-views", min=0, help="Maximum times seen"),
    only_marked: bool = typer.Option(False, "--marked", help="Only bookmarked questions"),
    random_order: bool = typer.Option(False, "--random/--sequential", help="Shuffle questions"),
    level: str | None = typer.Option(
        None, "--level", "-l", help="Answer level: super_corta, corta, normal"
    ),
) -> None:
    """Review the questions that match the given filters.

    Without --section/--topic every section and topic is included.
    """
    config, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)
    question_set = state.current_set

    answer_level = level or config.study.answer_level
    if answer_level not in ANSWER_LEVELS:
        console.print(f"[red]✗ Nivel de respuesta inválido: {answer_level}[/red]")
        raise typer.Exit(code=1)

    sections = set(section or ())
    unknown = sections - set(question_set.sections())
    if unknown:
        console.print(f"[yellow]⚠ Secciones desconocidas: {', '.join(sorted(unknown))}[/yellow]")

    criteria = FilterCriteria(
        sections=frozenset(sections),
        topics=frozenset(topic or ()),
        min_confidence=min_confidence,
        max_confidence=max_confidence,
        include_no_confidence=include_unrated,
        max_views=max_views,
        only_marked=only_marked,
    )

    session = ReviewSession(state, criteria=criteria, random_order=random_order)
    console.print(
        f"\n[bold]Repaso:[/bold] {question_set.name} "
        f"({session.total} de {len(question_set)} preguntas)"
    )
    _run_study_loop(session, answer_level)


# =============================================================================
# EXAM
# =============================================================================


def _render_exam_question(exam: ExamSession) -> None:
    question = exam.current
    if question is None:
        return

    timer = ""
    if exam.config.use_timer:
        color = {"danger": "red", "warning": "yellow"}.get(exam.timer_level(), "green")
        timer = f" · [{color}]{format_time(exam.time_left)}[/{color}]"

    body = f"[bold]{question.pregunta}[/bold]"
    if exam.answer_shown:
        body += f"\n\n[green]Respuesta:[/green] {question.respuesta_super_corta or '-'}"

    console.print(
        Panel(
            body,
            title=f"Pregunta {exam.position}/{exam.total}{timer}",
            expand=False,
        )
    )


def _print_exam_results(exam: ExamSession) -> None:
    results = exam.results()
    if results is None:
        return

    color = "green" if results.score >= 60 else "red"
    header = (
        f"[bold][{color}]{results.score}%[/{color}][/bold]\n"
        f"Respondidas: {results.answered}/{results.total} | "
        f"Saltadas: {results.skipped}\n"
        f"Confianza alta: {results.high_confidence} | "
        f"Confianza baja: {results.low_confidence} | "
        f"Promedio: {results.average_confidence}"
    )
    console.print(Panel(header, title="[bold]Resultado del examen[/bold]", expand=False))


@app.command()
def exam(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    questions: int | None = typer.Option(None, "--questions", "-q", min=1, help="Number of questions"),
    minutes: int | None = typer.Option(None, "--minutes", "-m", min=1, help="Total time in minutes"),
    use_timer: bool | None = typer.Option(None, "--timer/--no-timer", help="Enable countdown"),
    random_order: bool | None = typer.Option(None, "--random/--sequential", help="Shuffle questions"),
) -> None:
    """Take a timed exam over a sample of the set."""
    app_config, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)
    defaults = app_config.exam

    config = ExamConfig(
        question_count=questions or defaults.question_count,
        time_per_question=defaults.time_per_question,
        total_time_minutes=minutes or defaults.total_time_minutes,
        use_timer=defaults.use_timer if use_timer is None else use_timer,
        random_order=defaults.random_order if random_order is None else random_order,
    )

    session = ExamSession(state, config=config)
    session.start()
    console.print(f"\n[bold]Examen:[/bold] {state.current_set.name}")
    console.print(EXAM_HELP)

    last = time.monotonic()
    elapsed = 0.0
    while session.is_running or session.current is not None:
        if session.is_running:
            _render_exam_question(session)
        else:
            console.print("[yellow]⏸ En pausa (p para continuar)[/yellow]")

        key = _read_key()

        now = time.monotonic()
        elapsed += now - last
        last = now
        if elapsed >= 1:
            session.tick(int(elapsed))
            elapsed -= int(elapsed)
        if not session.is_running and session.current is None:
            console.print("[red]⏰ Tiempo agotado[/red]")
            break

        action = dispatch_exam_key(session, key)
        if action is KeyAction.QUIT:
            session.finish()
            break
        if action is None:
            console.print(f"[dim]Tecla no válida: {key!r}[/dim]")

    _print_exam_results(session)


# =============================================================================
# PROGRESS
# =============================================================================


@app.command()
def stats(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
) -> None:
    """Show progress statistics of a set."""
    _, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)

    summary = compute_stats(state.questions, state.progress)
    header = (
        f"Progreso: [bold]{summary.progress_percent}%[/bold] "
        f"({summary.answered}/{summary.total} respondidas)\n"
        f"Pendientes: {summary.pending} | "
        f"Confianza alta: {summary.high_confidence} | "
        f"Confianza baja: {summary.low_confidence}\n"
        f"Marcadas para repaso: {summary.marked_for_review} | "
        f"Promedio: {summary.average_confidence}"
    )
    console.print(Panel(header, title=f"[bold]{state.set_id}[/bold]", expand=False))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Sección", style="cyan")
    table.add_column("Preguntas", justify="right")
    table.add_column("Respondidas", justify="right")
    table.add_column("Promedio", justify="right")
    table.add_column("Progreso", justify="right")

    for s in compute_section_stats(state.questions, state.progress):
        table.add_row(
            s.name,
            str(s.total),
            str(s.answered),
            f"{s.average_confidence:.1f}",
            f"{s.progress_percent}%",
        )

    console.print(table)


@app.command()
def reset(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all progress of a set."""
    _, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)

    if not yes and not typer.confirm(
        f"¿Borrar todo el progreso de '{state.set_id}'?"
    ):
        console.print("[yellow]Cancelado[/yellow]")
        raise typer.Exit(code=0)

    if not state.reset_progress():
        console.print("[red]✗ No se pudo borrar el progreso[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Progreso borrado: {state.set_id}[/green]")


@app.command()
def export(
    set_prefix: str = typer.Argument(..., help="Set id or unique prefix"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Export progress of a set as JSON."""
    _, state = _bootstrap()
    _select_set_or_exit(state, set_prefix)

    payload = {
        "set_id": state.set_id,
        "name": state.current_set.name,
        "progress": state.store.export(state.set_id),
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)

    if output is None:
        console.print_json(text)
        return

    output_path = Path(output).expanduser()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    console.print(f"[green]✓ Progreso exportado: {output_path}[/green]")


if __name__ == "__main__":
    app()
