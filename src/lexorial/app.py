"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from lexorial.config import Settings, load_settings, setup_logging
from lexorial.content import (
    create_lesson, create_module, delete_lesson, delete_module, list_lessons, list_modules,
)
from lexorial.dashboard import get_learner_summary, get_module_breakdown, get_progress_color
from lexorial.db import init_db
from lexorial.errors import LexorialError
from lexorial.importer import import_course, import_lesson_intro
from lexorial.lesson_content import get_lesson_content, update_lesson_content
from lexorial.models import LessonContent, LongFormQuestion, MultipleChoiceQuestion, Question
from lexorial.progress import (
    complete_lesson, get_next_lesson, list_lessons_for_learner, list_modules_for_learner,
    reset_progress,
)
from lexorial.quiz import check_answer, create_question
from lexorial.seed import is_seeded, seed_all

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the learner leaves a session from any prompt."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str] | None = None) -> int:
    answer = Prompt.ask(prompt, choices=choices + list(EXIT_WORDS) if choices else None, show_choices=False)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return int(answer)


def show_welcome(user_id: str):
    console.print(Panel(
        f"[bold]Lexorial[/bold]\n[dim]Learning as {user_id}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("courses", "Modules and what is unlocked"),
        ("lessons", "Lessons in a module"),
        ("study", "Continue with your next lesson"),
        ("progress", "Level and module progress"),
        ("author", "Add or remove course content"),
        ("import", "Import a course outline"),
        ("reset", "Start over from level 1"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_learner() -> str:
    while True:
        user_id = Prompt.ask("Learner name").strip()
        if user_id:
            return user_id
        console.print("[red]A learner name is required.[/red]")


def show_lesson_content(content: LessonContent) -> None:
    lesson = content.lesson
    body = lesson.intro or "[dim]No introduction for this lesson.[/dim]"
    console.print(Panel(body, title=f"Lesson {lesson.order_index}: {lesson.title}", border_style="cyan"))
    if content.video:
        console.print(f"  [bold]Video:[/bold] {content.video.video_url}")
    if content.slide:
        console.print(f"  [bold]Slides:[/bold] {content.slide.slide_url}")
    if content.flashcard:
        console.print(f"  [bold]Flashcards:[/bold] {content.flashcard.url}")


def ask_question(question: Question) -> bool:
    console.print(f"[bold]{question.question_text}[/bold]\n")
    if isinstance(question, MultipleChoiceQuestion):
        if not question.choices:
            console.print("[dim]This question has no choices yet.[/dim]\n")
            return False
        numbers = [str(i) for i in range(1, len(question.choices) + 1)]
        for number, choice in zip(numbers, question.choices):
            console.print(f"  [cyan]{number})[/cyan] {choice.choice_text}")
        answer = session_prompt("\nYour answer", choices=numbers + list(EXIT_WORDS), show_choices=False)
        picked = question.choices[int(answer) - 1]
        is_correct = check_answer(question, picked.id)
        if not is_correct:
            right = [c.choice_text for c in question.choices if c.is_correct]
            console.print(f"[red]Incorrect.[/red] Answer: [green]{', '.join(right) or '-'}[/green]")
    elif isinstance(question, LongFormQuestion):
        answer = session_prompt("\nYour answer")
        is_correct = check_answer(question, answer)
        if not is_correct and question.accepted_answers:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{question.accepted_answers[0].accepted_answer}[/green]")
    else:
        raise TypeError(f"Unsupported question: {question!r}")
    if is_correct:
        console.print("[green]Correct![/green]")
    console.print()
    return is_correct


def run_question_session(questions: list[Question]) -> tuple[int, int]:
    if not questions:
        console.print("[yellow]No questions for this lesson.[/yellow]")
        return 0, 0
    correct = 0
    console.print(f"\n[bold]Questions[/bold] — {len(questions)}\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold]", end=" ")
        if ask_question(q):
            correct += 1
    console.print(f"[bold]Score: {correct}/{len(questions)} ({correct/len(questions)*100:.0f}%)[/bold]\n")
    return correct, len(questions)


def cmd_courses(db_path: str, user_id: str):
    table = Table(title="Modules")
    table.add_column("Level", justify="right")
    table.add_column("Module", style="cyan")
    table.add_column("Lessons", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    for m in get_module_breakdown(db_path, user_id):
        color = get_progress_color(m["percent"])
        status = "[green]Unlocked[/green]" if m["is_unlocked"] else "[dim]Locked[/dim]"
        table.add_row(
            str(m["level"]), m["title"], str(m["lessons"]),
            f"[{color}]{m['percent']}%[/{color}]", status,
        )
    console.print(table)


def choose_module(db_path: str, user_id: str) -> int | None:
    states = list_modules_for_learner(db_path, user_id)
    if not states:
        console.print("[yellow]No modules yet. Use 'author' or 'import' to add some.[/yellow]")
        return None
    for s in states:
        lock = "" if s.is_unlocked else " [dim](locked)[/dim]"
        console.print(f"  [cyan]{s.module.id}[/cyan]) {s.module.title}{lock}")
    return session_int_prompt("Select module", choices=[str(s.module.id) for s in states])


def cmd_lessons(db_path: str, user_id: str):
    module_id = choose_module(db_path, user_id)
    if module_id is None:
        return
    table = Table(title="Lessons")
    table.add_column("#", justify="right")
    table.add_column("Lesson")
    table.add_column("Status")
    for s in list_lessons_for_learner(db_path, user_id, module_id):
        if s.completed:
            status = "[green]Done[/green]"
        elif s.is_unlocked:
            status = "[cyan]Open[/cyan]"
        else:
            status = "[dim]Locked[/dim]"
        table.add_row(str(s.lesson.order_index), s.lesson.title, status)
    console.print(table)


def cmd_study(db_path: str, user_id: str):
    lesson = get_next_lesson(db_path, user_id)
    if lesson is None:
        console.print("[yellow]Nothing left to study. Every unlocked lesson is done![/yellow]")
        return
    content = get_lesson_content(db_path, lesson.id)
    show_lesson_content(content)
    session_prompt("[dim]Press Enter when you are ready for the questions[/dim]", default="")
    run_question_session(content.questions)
    if not Confirm.ask("Mark this lesson complete?", default=True):
        return
    try:
        progress = complete_lesson(db_path, user_id, lesson.id)
    except LexorialError as e:
        console.print(f"[red]Progress not saved: {e}[/red]")
        return
    if progress.level_lesson == 0:
        console.print(f"[bold green]Module complete! You reached level {progress.level}.[/bold green]")
    else:
        console.print("[green]Lesson complete![/green]")


def cmd_progress(db_path: str, user_id: str):
    summary = get_learner_summary(db_path, user_id)
    pct = summary["module_progress"]
    color = get_progress_color(pct)
    bar_filled = int(pct / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(f"[bold]Level {summary['display_level']}[/bold]", title="Your Progress", border_style="blue"))
    console.print(f"\n  Current module: [bold]{pct}%[/bold] {bar}\n")
    console.print(f"  Lessons: [bold]{summary['lessons_completed']}/{summary['total_lessons']}[/bold]  |  "
                  f"Modules: [bold]{summary['modules_completed']}/{summary['total_modules']}[/bold]")


def cmd_author(db_path: str, settings: Settings):
    action = Prompt.ask(
        "Author action",
        choices=["module", "lesson", "question", "media", "intro", "delete-module", "delete-lesson"],
    )
    if action == "module":
        title = Prompt.ask("Module title")
        module = create_module(db_path, title, Prompt.ask("Description", default=""))
        console.print(f"[green]Created module {module.id} at level {module.level}[/green]")
    elif action == "delete-module":
        module_id = _pick_module(db_path)
        if module_id is not None and Confirm.ask("Delete this module and all its lessons?", default=False):
            delete_module(db_path, module_id)
            console.print("[green]Module deleted.[/green]")
    elif action == "lesson":
        module_id = _pick_module(db_path)
        if module_id is not None:
            lesson = create_lesson(db_path, module_id, Prompt.ask("Lesson title"), intro=Prompt.ask("Intro", default="") or None)
            console.print(f"[green]Created lesson {lesson.id} at position {lesson.order_index}[/green]")
    else:
        lesson_id = _pick_lesson(db_path)
        if lesson_id is None:
            return
        if action == "delete-lesson":
            if Confirm.ask("Delete this lesson?", default=False):
                delete_lesson(db_path, lesson_id)
                console.print("[green]Lesson deleted.[/green]")
        elif action == "question":
            _author_question(db_path, lesson_id)
        elif action == "media":
            update_lesson_content(
                db_path, lesson_id,
                video_url=Prompt.ask("Video URL", default="") or None,
                flashcard_url=Prompt.ask("Flashcard URL", default="") or None,
                slide_file=Prompt.ask("Slide file path", default="") or None,
                slides_dir=settings.slides_dir,
            )
            console.print("[green]Lesson content updated.[/green]")
        elif action == "intro":
            file_path = Prompt.ask("Intro file (.txt, .md, .pdf, .docx, .html)")
            if not Path(file_path).exists():
                console.print(f"[red]File not found: {file_path}[/red]")
                return
            length = import_lesson_intro(db_path, lesson_id, file_path)
            console.print(f"[green]Intro imported ({length} characters).[/green]")


def _pick_module(db_path: str) -> int | None:
    modules = list_modules(db_path)
    if not modules:
        console.print("[yellow]No modules yet.[/yellow]")
        return None
    for m in modules:
        console.print(f"  [cyan]{m.id}[/cyan]) {m.title}")
    return session_int_prompt("Select module", choices=[str(m.id) for m in modules])


def _pick_lesson(db_path: str) -> int | None:
    module_id = _pick_module(db_path)
    if module_id is None:
        return None
    lessons = list_lessons(db_path, module_id)
    if not lessons:
        console.print("[yellow]This module has no lessons.[/yellow]")
        return None
    for lesson in lessons:
        console.print(f"  [cyan]{lesson.id}[/cyan]) {lesson.order_index}. {lesson.title}")
    return session_int_prompt("Select lesson", choices=[str(lesson.id) for lesson in lessons])


def _author_question(db_path: str, lesson_id: int):
    text = Prompt.ask("Question text")
    kind = Prompt.ask("Type", choices=["multiple", "long"], default="multiple")
    if kind == "multiple":
        choices = []
        while True:
            choice_text = Prompt.ask("Choice text (blank to finish)", default="")
            if not choice_text:
                break
            choices.append({"choice_text": choice_text, "is_correct": Confirm.ask("Correct?", default=False)})
        question = create_question(db_path, lesson_id, text, kind, choices=choices)
    else:
        answers = Prompt.ask("Accepted answers (separate with ;)")
        question = create_question(db_path, lesson_id, text, kind, accepted_answers=answers.split(";"))
    console.print(f"[green]Created question {question.id}[/green]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("Outline file (.json, .yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_course(db_path, file_path)
    console.print(
        f"[green]Imported {result['filename']}: {result['modules']} modules, "
        f"{result['lessons']} lessons, {result['questions']} questions[/green]"
    )


def cmd_reset(db_path: str, user_id: str):
    if Confirm.ask("Reset all progress back to level 1?", default=False):
        reset_progress(db_path, user_id)
        console.print("[green]Progress reset.[/green]")


def main():
    settings = load_settings()
    setup_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up the starter course...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    user_id = ask_learner()
    show_welcome(user_id)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "courses":
                cmd_courses(db_path, user_id)
            elif choice == "lessons":
                cmd_lessons(db_path, user_id)
            elif choice == "study":
                cmd_study(db_path, user_id)
            elif choice == "progress":
                cmd_progress(db_path, user_id)
            elif choice == "author":
                cmd_author(db_path, settings)
            elif choice == "import":
                cmd_import(db_path)
            elif choice == "reset":
                cmd_reset(db_path, user_id)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]¡Hasta luego![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to the menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except LexorialError as e:
            logger.warning("%s failed: %s", choice, e)
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.exception("Unexpected error in %s", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
