import logging
from enum import IntEnum
from pathlib import Path

import typer

from vendorpatch.logging import setup_logging
from vendorpatch.patching.descriptors import PatchSelectionError, load_descriptor, select_patch
from vendorpatch.patching.exceptions import ConfigError, PatchIOError
from vendorpatch.patching.models import ApplyResult, PatchSpec
from vendorpatch.patching.writer import apply_patch, check_patch
from vendorpatch.util.jsonl import append_record

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True)


class ExitCode(IntEnum):
    OK = 0
    PATTERN_NOT_MATCHED = 1
    USAGE_ERROR = 2
    IO_ERROR = 3
    CONFIG_ERROR = 4


def _load_spec(descriptor: Path, patch: str | None) -> PatchSpec:
    try:
        specs = load_descriptor(descriptor)
        return select_patch(specs, patch, descriptor)
    except ConfigError as exc:
        typer.echo(f"ERROR {exc}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR)
    except PatchSelectionError as exc:
        raise typer.BadParameter(str(exc))


def _report(result: ApplyResult, success_message: str) -> None:
    if result.matched:
        typer.echo(success_message)
        return
    typer.echo(f"FAIL {result.description}: {result.error_detail}", err=True)
    raise typer.Exit(code=ExitCode.PATTERN_NOT_MATCHED)


@app.command("apply")
def apply_cmd(
    descriptor: Path = typer.Argument(..., help="YAML file describing the patch(es)"),
    root: Path = typer.Option(..., "--root", help="Root of the source tree to patch"),
    patch: str | None = typer.Option(None, "--patch", help="Description of the patch to apply"),
    record: Path | None = typer.Option(None, "--record", help="Append the outcome to this JSONL ledger"),
    strict: bool = typer.Option(False, "--strict", help="Fail if the pattern matches more than once"),
):
    """
    Apply one patch and fail loudly if it did not change the target.
    """
    spec = _load_spec(descriptor, patch)

    try:
        result = apply_patch(spec, root, strict=True if strict else None)
    except PatchIOError as exc:
        typer.echo(f"ERROR {exc}", err=True)
        raise typer.Exit(code=ExitCode.IO_ERROR)

    if record is not None:
        append_record(record, result)

    _report(
        result,
        f"Patched {result.target_path} ({result.description}, {result.bytes_written} bytes)",
    )


@app.command("check")
def check_cmd(
    descriptor: Path = typer.Argument(..., help="YAML file describing the patch(es)"),
    root: Path = typer.Option(..., "--root", help="Root of the source tree to inspect"),
    patch: str | None = typer.Option(None, "--patch", help="Description of the patch to check"),
    strict: bool = typer.Option(False, "--strict", help="Fail if the pattern matches more than once"),
):
    """
    Report whether a patch would apply, without writing anything.
    """
    spec = _load_spec(descriptor, patch)

    try:
        result = check_patch(spec, root, strict=True if strict else None)
    except PatchIOError as exc:
        typer.echo(f"ERROR {exc}", err=True)
        raise typer.Exit(code=ExitCode.IO_ERROR)

    _report(result, f"OK {result.description}: would patch {result.target_path}")


@app.command("list")
def list_cmd(
    descriptor: Path = typer.Argument(..., help="YAML file describing the patch(es)"),
):
    """
    List the patches in a descriptor.
    """
    try:
        specs = load_descriptor(descriptor)
    except ConfigError as exc:
        typer.echo(f"ERROR {exc}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR)

    for spec in specs:
        typer.echo(f"{spec.description}\t{spec.target_path}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    vendorpatch: verified source patching for vendored build trees
    """
    setup_logging(logging.DEBUG if verbose else None)
