"""Command-line interface for Galley."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from galley import __version__
from galley.config import get_settings
from galley.core.exporter import ExportService
from galley.core.paths import sanitize_name
from galley.errors import ExportError
from galley.formats import get_handler
from galley.formatting.parser import MarkdownParser
from galley.storage.local import LocalBlobStore
from galley.storage.manifest import ManifestRecordStore

app = typer.Typer(
    name="galley",
    help="Compile article markdown to Word documents and export issue archives.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Galley v{__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def build_service(manifest: Optional[Path], uploads: Optional[Path]) -> ExportService:
    """Create an ExportService over a manifest file and an upload folder."""
    settings = get_settings()
    manifest_path = manifest or settings.manifest_path
    if manifest_path is None:
        console.print(
            "[red]Error:[/red] No manifest given (use --manifest or GALLEY_MANIFEST)"
        )
        raise typer.Exit(2)
    if not manifest_path.is_file():
        console.print(f"[red]Error:[/red] Manifest not found: {manifest_path}")
        raise typer.Exit(2)

    records = ManifestRecordStore.from_file(manifest_path)
    blobs = LocalBlobStore(uploads or settings.upload_dir)
    return ExportService(records, blobs, settings=settings)


def write_atomically(path: Path, write) -> None:
    """Write through a .part file and rename only once ``write`` succeeds."""
    partial = path.with_name(path.name + ".part")
    try:
        with partial.open("wb") as sink:
            write(sink)
        partial.replace(path)
    finally:
        if partial.exists():
            partial.unlink()


def fail(error: ExportError, verbose: bool) -> None:
    console.print(f"[red]Error ({error.reason}):[/red] {error.message}")
    if verbose:
        console.print_exception()
    raise typer.Exit(1)


ManifestOption = typer.Option(
    None,
    "--manifest",
    "-m",
    help="JSON manifest of volumes, issues, authors, articles and attachments",
)
UploadsOption = typer.Option(
    None,
    "--uploads",
    "-u",
    help="Folder holding uploaded files (default: GALLEY_UPLOAD_DIR)",
)
OutputOption = typer.Option(
    None,
    "--output",
    "-o",
    help="Output file or folder (default: current folder)",
)
VerboseOption = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable verbose output",
)


def resolve_output(output: Optional[Path], filename: str) -> Path:
    if output is None:
        return Path.cwd() / filename
    if output.is_dir():
        return output / filename
    return output


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Compile article markdown and export publication issues.

    Examples:

        galley render article.md --title "Spring Gala" --author "Ada Byron"

        galley article ART-1 --manifest records.json

        galley issue ISS-4 --manifest records.json --uploads ./uploads

        galley bundle VOL-2 --issue ISS-4 --issue ISS-5 --photos -m records.json
    """


@app.command()
def render(
    path: Path = typer.Argument(..., help="Markdown file to render", exists=True, dir_okay=False),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Document title (default: file name)"),
    author: str = typer.Option("Unknown Author", "--author", "-a", help="Byline name"),
    output: Optional[Path] = OutputOption,
    join_lines: bool = typer.Option(
        False,
        "--join-lines",
        "-j",
        help="Merge consecutive text lines into one paragraph",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Render a local markdown file to a .docx (or .md) document."""
    setup_logging(verbose)
    settings = get_settings()

    doc_title = title or path.stem
    parser = MarkdownParser(join_lines=join_lines or settings.join_soft_wrapped_lines)
    document = parser.parse(path.read_text(encoding="utf-8"), title=doc_title, author=author)

    output_path = resolve_output(output, f"{sanitize_name(doc_title)}.docx")
    try:
        handler = get_handler(output_path.suffix)()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if verbose:
        console.print(f"[blue]Blocks:[/blue] {len(document.blocks)}")
        console.print(f"[blue]Output:[/blue] {output_path}")

    rendered = handler.render(document)
    write_atomically(output_path, lambda sink: sink.write(rendered.data))
    console.print(f"[green]Success:[/green] {output_path}")


@app.command()
def article(
    article_id: str = typer.Argument(..., help="Article id"),
    manifest: Optional[Path] = ManifestOption,
    output: Optional[Path] = OutputOption,
    verbose: bool = VerboseOption,
) -> None:
    """Export one article as a .docx document."""
    setup_logging(verbose)
    service = build_service(manifest, None)

    try:
        result = service.export_article(article_id)
    except ExportError as e:
        fail(e, verbose)

    output_path = resolve_output(output, result.filename)
    write_atomically(output_path, lambda sink: sink.write(result.body))
    console.print(f"[green]Success:[/green] {output_path}")


@app.command()
def issue(
    issue_id: str = typer.Argument(..., help="Issue id"),
    manifest: Optional[Path] = ManifestOption,
    uploads: Optional[Path] = UploadsOption,
    output: Optional[Path] = OutputOption,
    verbose: bool = VerboseOption,
) -> None:
    """Export a whole issue as a zip archive."""
    setup_logging(verbose)
    service = build_service(manifest, uploads)

    try:
        job = service.build_issue_job(issue_id)
        output_path = resolve_output(output, service.issue_filename(job))
        reports = []
        write_atomically(
            output_path,
            lambda sink: reports.append(service.write_job(job, sink)),
        )
    except ExportError as e:
        fail(e, verbose)

    report = reports[0]
    console.print(
        f"[green]Success:[/green] {output_path} "
        f"({len(report.entries)} files, {report.bytes_written} bytes)"
    )
    if report.skipped:
        console.print(
            f"[yellow]Warning:[/yellow] {len(report.skipped)} file(s) missing from storage"
        )
        if verbose:
            for path in report.skipped:
                console.print(f"  [yellow]-[/yellow] {path}")


@app.command()
def bundle(
    volume_id: str = typer.Argument(..., help="Volume id"),
    issue_ids: list[str] = typer.Option(..., "--issue", "-i", help="Issue id (repeatable)"),
    photos: bool = typer.Option(False, "--photos", "-p", help="Include photo files"),
    manifest: Optional[Path] = ManifestOption,
    uploads: Optional[Path] = UploadsOption,
    output: Optional[Path] = OutputOption,
    verbose: bool = VerboseOption,
) -> None:
    """Export the website bundle (JSON per issue) for selected issues."""
    setup_logging(verbose)
    service = build_service(manifest, uploads)

    try:
        volume, issues = service.bundles.resolve(volume_id, issue_ids)
        output_path = resolve_output(output, service.bundles.filename(volume, issues))
        write_atomically(
            output_path,
            lambda sink: service.write_bundle(volume_id, issue_ids, sink, include_photos=photos),
        )
    except ExportError as e:
        fail(e, verbose)

    console.print(f"[green]Success:[/green] {output_path}")


@app.command()
def convert(
    attachment_id: str = typer.Argument(..., help="Attachment id of an uploaded .docx"),
    manifest: Optional[Path] = ManifestOption,
    uploads: Optional[Path] = UploadsOption,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write markdown here instead of printing it"
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Convert an uploaded .docx attachment to markdown."""
    setup_logging(verbose)
    service = build_service(manifest, uploads)

    try:
        markdown = service.convert_attachment(attachment_id)
    except ExportError as e:
        fail(e, verbose)

    if output is None:
        console.print(markdown, markup=False, highlight=False, end="")
        return

    write_atomically(output, lambda sink: sink.write(markdown.encode("utf-8")))
    console.print(f"[green]Success:[/green] {output}")


if __name__ == "__main__":
    app()
