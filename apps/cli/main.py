"""Typer CLI entrypoint for cuebench."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

from apps.cli.format_human import render_parse_summary, render_preview, render_search_matches
from apps.cli.io import (
    parse_result_payload,
    preview_payload,
    read_input_text,
    read_names,
    search_payload,
    write_json_atomic,
    write_rename_plan_atomic,
)
from core.config.settings import PipelineSettings, load_settings
from core.controller.workbench import WorkbenchController
from core.records.models import ParseResult
from core.rename.models import NamedItem, PreviewResult, TransformRule
from core.rename.rules_loader import load_rules
from core.utils.events import dump_json

app = typer.Typer(help="cuebench record workbench CLI", rich_markup_mode=None)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_MALFORMED = 2
EXIT_TOO_LARGE = 3

_LOG_FORMAT = "%(levelname)s %(name)s %(message)s"


@app.callback()
def cli_callback(
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Log pipeline events to stderr.")
    ] = False,
) -> None:
    """Parse, search and rename-preview registration records."""

    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format=_LOG_FORMAT)


@app.command("parse")
def parse_command(
    file: Annotated[Path, typer.Argument(help="Fixed-width record file.")],
    chunk_lines: Annotated[int | None, typer.Option("--chunk-lines")] = None,
    max_records: Annotated[int | None, typer.Option("--max-records")] = None,
    settings: Annotated[Path | None, typer.Option("--settings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
    out: Annotated[Path | None, typer.Option("--out", help="Write the result JSON here.")] = None,
) -> None:
    """Parse a record file and print a summary."""

    _require_positive("--chunk-lines", chunk_lines)
    _require_positive("--max-records", max_records)
    pipeline_settings = _load_settings_or_exit(settings)
    text = _read_or_exit(file)

    result = _parse_or_exit(
        pipeline_settings, text, file.name, chunk_lines=chunk_lines, max_records=max_records
    )
    payload = parse_result_payload(result)

    if out is not None:
        write_json_atomic(out, payload)
        typer.echo(f"INFO: wrote parse result to {out}")
    if as_json:
        typer.echo(dump_json(payload))
    else:
        typer.echo(render_parse_summary(result))
    raise typer.Exit(code=EXIT_OK)


@app.command("search")
def search_command(
    file: Annotated[Path, typer.Argument(help="Fixed-width record file.")],
    query: Annotated[str, typer.Argument(help="Case-insensitive substring.")],
    limit: Annotated[int, typer.Option("--limit", help="Matches to print.")] = 20,
    settings: Annotated[Path | None, typer.Option("--settings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print matches as JSON.")] = False,
) -> None:
    """Parse a record file and list records containing QUERY."""

    _require_positive("--limit", limit)
    pipeline_settings = _load_settings_or_exit(settings)
    text = _read_or_exit(file)

    controller = asyncio.run(_parse_and_search(pipeline_settings, text, file.name, query))
    result = _result_or_exit(controller)
    matches = controller.matches

    if as_json:
        typer.echo(dump_json(search_payload(query, result.records, matches, limit=limit)))
    else:
        typer.echo(render_search_matches(query, result.records, matches, limit=limit))
    raise typer.Exit(code=EXIT_OK)


@app.command("preview")
def preview_command(
    rules: Annotated[Path, typer.Option("--rules", help="Rule set YAML.")],
    names: Annotated[list[str] | None, typer.Argument(help="Item names.")] = None,
    names_file: Annotated[
        Path | None, typer.Option("--names-file", help="File with one name per line.")
    ] = None,
    settings: Annotated[Path | None, typer.Option("--settings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the preview as JSON.")] = False,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Write the preview (.json) or a rename plan (.yaml/.yml)."),
    ] = None,
) -> None:
    """Preview the names a rule set would produce for a batch."""

    pipeline_settings = _load_settings_or_exit(settings)
    try:
        rule_list = load_rules(rules)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_USAGE) from exc

    all_names = list(names or [])
    if names_file is not None:
        try:
            all_names.extend(read_names(names_file))
        except ValueError as exc:
            typer.echo(f"ERROR: {exc}")
            raise typer.Exit(code=EXIT_USAGE) from exc
    if not all_names:
        typer.echo("ERROR: no names given; pass NAME arguments or --names-file.")
        raise typer.Exit(code=EXIT_USAGE)

    items = [
        NamedItem.from_name(name, item_id=f"item-{index + 1}")
        for index, name in enumerate(all_names)
    ]
    preview, error = asyncio.run(_compute_preview(pipeline_settings, items, rule_list))
    if preview is None:
        typer.echo(f"ERROR: preview failed: {error}")
        raise typer.Exit(code=EXIT_USAGE)

    if out is not None:
        if out.suffix.lower() in {".yaml", ".yml"}:
            write_rename_plan_atomic(out, preview)
        else:
            write_json_atomic(out, preview_payload(preview))
        typer.echo(f"INFO: wrote preview to {out}")
    if as_json:
        typer.echo(dump_json(preview_payload(preview)))
    else:
        typer.echo(render_preview(preview))
    raise typer.Exit(code=EXIT_OK)


def _parse_or_exit(
    settings: PipelineSettings,
    text: str,
    source: str,
    *,
    chunk_lines: int | None = None,
    max_records: int | None = None,
) -> ParseResult:
    controller = asyncio.run(
        _parse(settings, text, source, chunk_lines=chunk_lines, max_records=max_records)
    )
    return _result_or_exit(controller)


def _result_or_exit(controller: WorkbenchController) -> ParseResult:
    failure = controller.parse_failure
    if failure is not None:
        typer.echo(f"ERROR: {failure.message}")
        code = EXIT_TOO_LARGE if failure.kind == "too_large" else EXIT_MALFORMED
        raise typer.Exit(code=code)
    if controller.parse_result is None:
        typer.echo("ERROR: parse produced no result")
        raise typer.Exit(code=EXIT_MALFORMED)
    return controller.parse_result


async def _parse(
    settings: PipelineSettings,
    text: str,
    source: str,
    *,
    chunk_lines: int | None,
    max_records: int | None,
) -> WorkbenchController:
    async with WorkbenchController.from_settings(settings) as controller:
        controller.start_parse(text, source, chunk_lines=chunk_lines, max_records=max_records)
        await controller.settle_parse()
    return controller


async def _parse_and_search(
    settings: PipelineSettings, text: str, source: str, query: str
) -> WorkbenchController:
    async with WorkbenchController.from_settings(settings) as controller:
        controller.start_parse(text, source)
        await controller.settle_parse()
        if controller.parse_result is not None:
            controller.run_search(query)
            await controller.settle_search()
    return controller


async def _compute_preview(
    settings: PipelineSettings, items: list[NamedItem], rules: list[TransformRule]
) -> tuple[PreviewResult | None, str | None]:
    async with WorkbenchController.from_settings(settings, items=items) as controller:
        controller.request_preview(rules)
        await controller.settle_preview()
    return controller.preview, controller.preview_error


def _load_settings_or_exit(path: Path | None) -> PipelineSettings:
    try:
        return load_settings(path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_USAGE) from exc


def _read_or_exit(path: Path) -> str:
    try:
        return read_input_text(path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_USAGE) from exc


def _require_positive(option: str, value: int | None) -> None:
    if value is not None and value <= 0:
        typer.echo(f"ERROR: {option} must be > 0.")
        raise typer.Exit(code=EXIT_USAGE)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
