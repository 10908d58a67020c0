"""Command-line interface for python-docx-review.

Provides commands for applying review edits to Word documents from the terminal.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from . import __version__
from .constants import DEFAULT_AUTHOR
from .edits import Comment, Deletion, Edit, Insertion, Replacement, load_edit_file
from .errors import DocxReviewError
from .results import BatchResult
from .session import ReviewSession

app = typer.Typer(
    name="docx-review",
    help="Apply review edits to Word documents as tracked changes and comments.",
    no_args_is_help=True,
)

# Exit status when at least one edit could not be applied
EXIT_PARTIAL = 2

FileArg = Annotated[Path, typer.Argument(help="Path to the .docx file")]
ParagraphOpt = Annotated[
    int, typer.Option("--paragraph", "-p", help="Index of the paragraph to edit (0-based)")
]
AuthorOpt = Annotated[
    str, typer.Option("--author", help="Author name for tracked changes and comments")
]
InitialsOpt = Annotated[
    str | None, typer.Option("--initials", help="Comment author initials")
]
OutputOpt = Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")]
AllowPartialOpt = Annotated[
    bool,
    typer.Option("--allow-partial", help="Save and exit 0 even if some edits failed"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docx-review version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log applied and skipped edits.")
    ] = False,
) -> None:
    """Apply review edits to Word documents as tracked changes and comments."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _run(
    file: Path,
    edits: list[Edit],
    author: str,
    initials: str | None,
    output: Path | None,
    allow_partial: bool,
) -> BatchResult:
    """Apply edits to a file and save the result."""
    try:
        session = ReviewSession.open(file, author=author, initials=initials)
        results = session.apply_edits(edits)
    except (DocxReviewError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for result in results.failed:
        typer.echo(f"  Failed: {result.message}", err=True)

    if not results.all_succeeded and not allow_partial:
        typer.echo("Error: not all edits could be applied; document not saved", err=True)
        raise typer.Exit(EXIT_PARTIAL)

    output_path = output or file
    try:
        session.save(output_path)
    except (DocxReviewError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(
        f"Applied {results.success_count} edits ({results.failure_count} failed), "
        f"saved to {output_path}"
    )
    return results


@app.command()
def paragraphs(file: FileArg) -> None:
    """List the body paragraphs with their indexes."""
    try:
        session = ReviewSession.open(file)
    except (DocxReviewError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for paragraph in session.paragraphs:
        typer.echo(f"[{paragraph.index}] {paragraph.text}")


@app.command()
def delete(
    file: FileArg,
    paragraph: ParagraphOpt,
    text: Annotated[str, typer.Option("--text", "-t", help="Text to delete")],
    author: AuthorOpt = DEFAULT_AUTHOR,
    output: OutputOpt = None,
) -> None:
    """Delete text with tracked changes."""
    _run(file, [Deletion(paragraph, text)], author, None, output, False)


@app.command()
def insert(
    file: FileArg,
    paragraph: ParagraphOpt,
    text: Annotated[str, typer.Option("--text", "-t", help="Text to insert")],
    after: Annotated[
        str,
        typer.Option("--after", "-a", help="Insert after this text (omit for paragraph start)"),
    ] = "",
    author: AuthorOpt = DEFAULT_AUTHOR,
    output: OutputOpt = None,
) -> None:
    """Insert text with tracked changes."""
    _run(file, [Insertion(paragraph, after, text)], author, None, output, False)


@app.command()
def replace(
    file: FileArg,
    paragraph: ParagraphOpt,
    find: Annotated[str, typer.Option("--find", "-f", help="Text to find")],
    replacement: Annotated[str, typer.Option("--replace", "-r", help="Replacement text")],
    author: AuthorOpt = DEFAULT_AUTHOR,
    output: OutputOpt = None,
) -> None:
    """Replace text with tracked changes."""
    _run(file, [Replacement(paragraph, find, replacement)], author, None, output, False)


@app.command()
def comment(
    file: FileArg,
    paragraph: ParagraphOpt,
    target: Annotated[str, typer.Option("--target", "-t", help="Text to comment on")],
    body: Annotated[str, typer.Option("--body", "-b", help="Comment text")],
    author: AuthorOpt = DEFAULT_AUTHOR,
    initials: InitialsOpt = None,
    output: OutputOpt = None,
) -> None:
    """Attach a comment to text."""
    _run(file, [Comment(paragraph, target, body)], author, initials, output, False)


@app.command()
def apply(
    file: FileArg,
    edits: Annotated[Path, typer.Argument(help="Path to YAML/JSON edits file")],
    author: AuthorOpt = DEFAULT_AUTHOR,
    initials: InitialsOpt = None,
    output: OutputOpt = None,
    allow_partial: AllowPartialOpt = False,
) -> None:
    """Apply edits from a YAML or JSON file."""
    try:
        loaded = load_edit_file(edits)
    except (DocxReviewError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _run(file, loaded, author, initials, output, allow_partial)


if __name__ == "__main__":
    app()
