"""Command-line interface for Docscan."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Optional

import typer

from docscan.config import get_settings
from docscan.errors import ConfigurationError
from docscan.extraction.factory import ExtractorType, JsonExtractorFactory
from docscan.logging_utils import configure_logging
from docscan.models.common import DOCUMENT_TYPES
from docscan.pipeline.factory import build_scanners
from docscan.server.run import serve as run_server

app = typer.Typer(help="Scan check and receipt images into structured JSON.")

_EXTRA_MIME_TYPES = {
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".webp": "image/webp",
}


def _guess_mime_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or _EXTRA_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


@app.command()
def scan(
    image_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    document_type: str = typer.Option("receipt", "--type", "-t", help="check or receipt."),
    mime_type: Optional[str] = typer.Option(
        None, "--mime-type", help="Override the MIME type guessed from the file name."
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print output JSON."),
) -> None:
    """
    Run OCR and extraction against a local image and print the scan result.
    """

    normalized_type = document_type.strip().lower()
    if normalized_type not in DOCUMENT_TYPES:
        raise typer.BadParameter(
            f"expected one of: {', '.join(DOCUMENT_TYPES)}", param_hint="--type"
        )

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, settings.secrets())
    try:
        scanners = build_scanners(settings)
    except ConfigurationError as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    scanner = scanners[normalized_type]
    outcome = scanner.scan(image_path.read_bytes(), mime_type or _guess_mime_type(image_path))
    if not outcome.ok:
        payload: dict = {"error": str(outcome.error)}
        if outcome.error is not None and getattr(outcome.error, "issues", None):
            payload["issues"] = [issue.as_dict() for issue in outcome.error.issues]
        typer.echo(json.dumps(payload, indent=2 if pretty else None), err=True)
        raise typer.Exit(code=1)

    as_dict = scanner.to_response(outcome).to_payload()
    if pretty:
        typer.echo(json.dumps(as_dict, indent=2, sort_keys=True))
    else:
        typer.echo(json.dumps(as_dict))


@app.command()
def extractors() -> None:
    """Show which JSON extractors are configured and usable."""

    settings = get_settings()
    factory = JsonExtractorFactory(settings)
    for kind in ExtractorType:
        availability = factory.check_availability(kind)
        marker = "available" if availability.available else f"unavailable ({availability.reason})"
        role = ""
        if kind.value == settings.json_extractor:
            role = " [primary]"
        elif kind.value == settings.json_extractor_fallback:
            role = " [fallback]"
        typer.echo(f"{kind.value}{role}: {marker}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
    duration: Optional[float] = typer.Option(
        None, "--duration", help="Stop after this many seconds (smoke runs)."
    ),
) -> None:
    """Run the HTTP API."""

    run_server(host, port, reload=reload, duration=duration)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m docscan`."""
    app(prog_name="docscan", args=argv)


if __name__ == "__main__":
    main()
