import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from weekdigest.config import settings
from weekdigest.database import SessionLocal, init_db
from weekdigest.crud import create_class, create_document, flag_schedule_document, set_current_week
from weekdigest.document_processor import guess_doc_type, guess_mime_type, process_document
from weekdigest.errors import DocumentExtractionError
from weekdigest.recommendation_service import get_default_service as get_recommendation_service
from weekdigest.schemas import ClassCreate, DocumentCreate
from weekdigest.week_schedule_service import get_default_service as get_schedule_service

NO_CONTENT_EXIT_CODE = 3  # "no weekly content" is not a failure

app = typer.Typer(help="Week Digest CLI - weekly class schedules and study resources from course documents")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    """Configure logging for every command"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)]
    )


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from weekdigest.database import engine, Base
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    init_db()
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command("create-class")
def create_class_cmd(
    user_id: str = typer.Option(..., prompt="User ID"),
    title: str = typer.Option(..., prompt="Class title (e.g., Math 31B)"),
    current_week: Optional[int] = typer.Option(None, min=1, max=20, help="Current semester week (1-20)")
):
    """Create a new class"""
    db = SessionLocal()
    try:
        course_class = create_class(db, ClassCreate(user_id=user_id, title=title, current_week=current_week))
        console.print(f"[green]✓[/green] Class created successfully! Class ID: {course_class.id}")
        console.print(f"  Title: {course_class.title}")
        if course_class.current_week:
            console.print(f"  Current week: {course_class.current_week}")
    finally:
        db.close()


@app.command()
def set_week(
    class_id: int = typer.Option(..., prompt="Class ID"),
    user_id: str = typer.Option(..., prompt="User ID"),
    week: int = typer.Option(..., prompt="Current week (1-20)", min=1, max=20)
):
    """Confirm the class's current semester week"""
    db = SessionLocal()
    try:
        course_class = set_current_week(db, class_id, user_id, week)
        if not course_class:
            console.print(f"[red]✗[/red] Class {class_id} not found for user {user_id}")
            raise typer.Exit(code=1)
        console.print(f"[green]✓[/green] Week {week} set for {course_class.title}")
    finally:
        db.close()


@app.command()
def upload_document(
    class_id: int = typer.Option(..., prompt="Class ID"),
    user_id: str = typer.Option(..., prompt="User ID"),
    file_path: str = typer.Option(..., prompt="Document path (.pdf, .docx, .csv, .xlsx or .txt)"),
    doc_type: Optional[str] = typer.Option(None, help="syllabus, schedule or other (default: from filename)"),
    official_schedule: bool = typer.Option(False, "--official-schedule", help="Use this file as the class schedule")
):
    """Upload a course document, extract its text and prime the current week"""
    path = Path(file_path)
    if not path.exists():
        console.print(f"[red]✗[/red] File not found: {file_path}")
        raise typer.Exit(code=1)

    db = SessionLocal()
    try:
        document = create_document(db, DocumentCreate(
            class_id=class_id,
            user_id=user_id,
            filename=path.name,
            mime_type=guess_mime_type(path.name),
            doc_type=doc_type or guess_doc_type(path.name)
        ))

        console.print("[yellow]Extracting text...[/yellow]")
        try:
            text = process_document(db, document.id, path.read_bytes())
        except DocumentExtractionError as e:
            console.print(f"[red]✗[/red] Error: {str(e)}")
            raise typer.Exit(code=1)

        console.print(f"[green]✓[/green] Document uploaded successfully! ID: {document.id}")
        console.print(f"  Type: {document.doc_type}")
        console.print(f"  Extracted {len(text or '')} characters")

        if official_schedule:
            flag_schedule_document(db, class_id, user_id, document.id)
    finally:
        db.close()

    result = asyncio.run(get_schedule_service().prime_current_week(class_id, user_id))
    if result["primed"]:
        console.print(f"[green]✓[/green] Current week schedule ready ({result['entry_count']} days)")
    else:
        console.print("[dim]Current week not primed: schedule or current week missing[/dim]")


@app.command()
def week_schedule(
    class_id: int = typer.Option(..., prompt="Class ID"),
    user_id: str = typer.Option(..., prompt="User ID"),
    week: Optional[int] = typer.Option(None, help="Semester week (default: current week)")
):
    """Show the 7-day schedule for a class week"""
    schedule = asyncio.run(get_schedule_service().get_week_schedule(class_id, user_id, week))
    if schedule is None:
        console.print("[yellow]No schedule available. Upload a schedule document and set the current week.[/yellow]")
        raise typer.Exit(code=NO_CONTENT_EXIT_CODE)

    console.print(f"\n[bold]Week {schedule.week}[/bold] ({schedule.week_start_iso} to {schedule.week_end_iso})")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Day", style="cyan", width=5)
    table.add_column("Date", style="cyan", width=12)
    table.add_column("Plan", style="green")
    table.add_column("Tags", style="yellow")

    for day in schedule.days:
        table.add_row(day.dow, day.date_iso, day.primary, ", ".join(day.tags or []))

    console.print(table)

    if schedule.upcoming:
        console.print("\n[cyan]Upcoming:[/cyan]")
        for item in schedule.upcoming:
            console.print(f"  {item.due_dow_label:<9} {item.title} ({item.due_date_iso})")

    console.print(f"\n[dim]Generated {schedule.generated_at_iso} with {schedule.model}[/dim]")


@app.command()
def week_resources(
    class_id: int = typer.Option(..., prompt="Class ID"),
    user_id: str = typer.Option(..., prompt="User ID"),
    week: Optional[int] = typer.Option(None, help="Semester week (default: current week)")
):
    """Show curated learning resources for a class week"""
    recommendation = asyncio.run(get_recommendation_service().get_week_recommendation(class_id, user_id, week))
    if recommendation is None or not recommendation.resources:
        if recommendation is not None:
            console.print(f"\n[bold]Week {recommendation.week} topics[/bold] ({recommendation.topic_source}):")
            for topic in recommendation.topics:
                console.print(f"  - {topic}")
        console.print("[yellow]No weekly resources found. Upload more course material for this week.[/yellow]")
        raise typer.Exit(code=NO_CONTENT_EXIT_CODE)

    console.print(f"\n[bold]Week {recommendation.week}: {recommendation.topic_summary}[/bold]")
    console.print(f"[dim]Topics from {recommendation.topic_source}: {', '.join(recommendation.topics[:5])}[/dim]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Source", style="blue")
    table.add_column("URL")

    for index, resource in enumerate(recommendation.resources, 1):
        table.add_row(str(index), resource.title, resource.type, resource.source, resource.url)

    console.print(table)

    for index, resource in enumerate(recommendation.resources, 1):
        console.print(f"  [cyan]{index}.[/cyan] {resource.summary}")


@app.command()
def precompute():
    """Generate next week's schedule for every class with a current week"""
    console.print("[yellow]Precomputing next week schedules...[/yellow]")
    result = asyncio.run(get_schedule_service().precompute_next_week_schedules())
    console.print(
        f"[green]✓[/green] Generated {result['generated_count']} schedules "
        f"across {result['scanned_classes']} classes"
    )


if __name__ == "__main__":
    app()
