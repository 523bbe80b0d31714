"""
Simple CLI for running the pipeline locally.

Usage:
    hybrid-ocr extract path/to/document.pdf
    hybrid-ocr extract scan.pdf --language vi --threshold 0.6 --output result.json
    hybrid-ocr validate "Đã thanh toán."
    hybrid-ocr serve
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

console = Console()


def app() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="hybrid-ocr",
        description="Adaptive hybrid PDF text extraction",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # extract sub-command
    p_extract = sub.add_parser("extract", help="Extract text from a PDF")
    p_extract.add_argument("pdf", type=Path, help="Path to the PDF")
    p_extract.add_argument("--no-ocr", action="store_true", help="Text layer only")
    p_extract.add_argument("--no-validation", action="store_true", help="Use the legacy length rule")
    p_extract.add_argument("--threshold", type=float, help="Validation confidence threshold (0-1)")
    p_extract.add_argument("--density", type=int, help="Rasterization DPI")
    p_extract.add_argument("--format", choices=["png", "jpg"], help="Raster image format")
    p_extract.add_argument("--language", help="Language hint for recognition, e.g. en, vi")
    p_extract.add_argument("--deadline", type=float, help="Overall recognition deadline in seconds")
    p_extract.add_argument("--output", type=Path, help="Write JSON output to this file")

    # validate sub-command
    p_validate = sub.add_parser("validate", help="Score a piece of text with the quality validator")
    p_validate.add_argument("text", nargs="?", help="Text to validate")
    p_validate.add_argument("--file", type=Path, help="Read text from this file instead")

    # serve sub-command
    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", help="Bind address (default: API_HOST)")
    p_serve.add_argument("--port", type=int, help="Bind port (default: API_PORT)")

    args = parser.parse_args()

    if args.command == "extract":
        _cmd_extract(args)
    elif args.command == "validate":
        _cmd_validate(args)
    elif args.command == "serve":
        _cmd_serve(args)


def _build_options(args):
    from pydantic import ValidationError

    from hybrid_ocr.config import settings
    from hybrid_ocr.schemas.options import OcrOptions, ProcessingOptions

    try:
        ocr = OcrOptions(
            language=args.language or "en",
            density=args.density or settings.default_density,
            format=args.format or settings.default_format,
        )
        return ProcessingOptions(
            enable_ocr=not args.no_ocr,
            ocr=ocr,
            validation_enabled=False if args.no_validation else None,
            confidence_threshold=args.threshold,
            deadline_seconds=args.deadline,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid options:[/red] {exc}")
        sys.exit(2)


def _cmd_extract(args) -> None:
    from hybrid_ocr.logging import configure_logging
    from hybrid_ocr.pipeline.coordinator import HybridPdfProcessor

    configure_logging()

    if not args.pdf.is_file():
        console.print(f"[red]No such file: {args.pdf}[/red]")
        sys.exit(1)

    options = _build_options(args)
    processor = HybridPdfProcessor.from_settings()

    console.print(f"[bold]Extracting:[/bold] {args.pdf}")
    result = asyncio.run(processor.process(args.pdf.read_bytes(), args.pdf.name, options))

    if not result.success:
        console.print(f"[red]Extraction failed ({result.error_kind}):[/red] {result.error}")
        if args.output:
            args.output.write_text(result.model_dump_json(indent=2))
        sys.exit(1)

    meta = result.metadata
    table = Table(title=f"{meta.title or args.pdf.name} ({meta.method.value}, strategy={meta.strategy})")
    table.add_column("Page", justify="right", style="dim")
    table.add_column("Method")
    table.add_column("Confidence", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Error", style="red")

    for page in result.page_results:
        table.add_row(
            str(page.page_number),
            page.method.value,
            f"{page.confidence:.2f}" if page.confidence is not None else "-",
            str(len(page.text)),
            page.error or "",
        )

    console.print(table)
    console.print(
        f"\nPages: {meta.page_count}  text: {meta.text_page_count}  ocr: {meta.ocr_page_count}"
        f"  skipped: {meta.skipped_page_count}  time: {meta.total_processing_time_ms} ms"
    )
    if meta.average_confidence is not None:
        console.print(f"Average validation confidence: {meta.average_confidence:.0%}")
    if meta.degraded_reason:
        console.print(f"[yellow]Degraded:[/yellow] {meta.degraded_reason}")

    if args.output:
        args.output.write_text(result.model_dump_json(indent=2))
        console.print(f"[green]JSON written to {args.output}[/green]")


def _cmd_validate(args) -> None:
    from hybrid_ocr.pipeline.validator import validate_text_quality

    if args.file:
        text = args.file.read_text(encoding="utf-8")
    elif args.text is not None:
        text = args.text
    else:
        console.print("[red]Provide TEXT or --file[/red]")
        sys.exit(2)

    result = validate_text_quality(text)
    color = "green" if result.is_valid else "red"

    console.print(f"Valid: [{color}]{result.is_valid}[/{color}]")
    console.print(f"Confidence: {result.confidence:.0%}")
    console.print(f"Reason: {result.reason}")

    m = result.metrics
    table = Table(title="Metrics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("char_length", str(m.char_length))
    table.add_row("word_count", str(m.word_count))
    table.add_row("average_word_length", f"{m.average_word_length:.2f}")
    table.add_row("entropy", f"{m.entropy:.3f}")
    table.add_row("unique_char_count", str(m.unique_char_count))
    table.add_row("word_density", f"{m.word_density:.3f}")
    table.add_row("repetitive_patterns", str(m.repetitive_patterns))
    console.print(table)


def _cmd_serve(args) -> None:
    import uvicorn

    from hybrid_ocr.config import settings

    uvicorn.run(
        "hybrid_ocr.api.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=settings.api_reload,
    )
