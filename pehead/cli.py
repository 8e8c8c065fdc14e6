from __future__ import annotations

import json
from importlib import metadata
from pathlib import Path
from typing import List, Optional

import typer

from pehead.config import load_config
from pehead.errors import PeHeaderError
from pehead.logs import setup_logging
from pehead.model import HeaderReport
from pehead.pe import read_pe_headers_from_path
from pehead.reporters.console import print_input_heading, render_console
from pehead.reporters.json_report import build_report, reports_to_json, write_json

app = typer.Typer(add_completion=False)


def version_callback(value: bool):
    if value:
        try:
            v = metadata.version("pehead")
        except metadata.PackageNotFoundError:
            v = "0.1.0-dev"
        typer.echo(f"pehead version: {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
):
    """
    Read-only decoder for PE/COFF image headers.
    """
    pass


def _decode_one(p: Path, size: int, *, as_json: bool, verbose: bool) -> HeaderReport:
    """Decodes one file. Failures are reported on stderr and recorded in the report."""
    dump = verbose and not as_json
    if dump:
        print_input_heading(str(p))
    try:
        # The verbose dump is a table; it would corrupt JSON on stdout.
        headers = read_pe_headers_from_path(p, verbose=dump)
    except PeHeaderError as e:
        typer.secho(f"Error decoding {p.name}: {e.code}: {e}", fg=typer.colors.RED, err=True)
        return HeaderReport(input_path=str(p), file_size=size, error=e.to_dict())
    except OSError as e:
        typer.secho(f"Error reading {p.name}: {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
        return HeaderReport(input_path=str(p), file_size=size, error={"code": "E_IO", "message": str(e)})

    if not as_json and not verbose:
        render_console(headers, str(p))
    return build_report(str(p), size, headers)


@app.command()
def show(
    paths: List[str] = typer.Argument(..., help="PE files to decode."),
    config: str = typer.Option(None, "--config", help="Path to YAML config."),
    as_json: bool = typer.Option(False, "--json", help="Print decoded headers as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Dump each header as soon as it is decoded."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."),
    out: str = typer.Option(None, "--out", help="Also write the JSON reports to this file."),
):
    cfg = load_config(config)
    if as_json:
        cfg.output_format = "json"
    if verbose:
        cfg.verbose = True
    if log_level:
        cfg.log_level = log_level

    try:
        setup_logging(cfg.log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    reports: List[HeaderReport] = []
    failed = 0
    for raw in paths:
        p = Path(raw).expanduser().resolve()
        if not p.is_file():
            typer.secho(f"Error: not a file: {p}", fg=typer.colors.RED, err=True)
            failed += 1
            continue

        size = p.stat().st_size
        if size > cfg.limits.max_file_size_bytes:
            typer.secho(f"Skipping {p.name}: File too large ({size} bytes).", fg=typer.colors.YELLOW, err=True)
            continue

        rep = _decode_one(p, size, as_json=cfg.output_format == "json", verbose=cfg.verbose)
        if rep.error is not None:
            failed += 1
        reports.append(rep)

    docs = reports_to_json(reports)
    if cfg.output_format == "json":
        typer.echo(json.dumps(docs, indent=2, ensure_ascii=False))
    if out:
        write_json(Path(out).expanduser().resolve(), docs)

    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
