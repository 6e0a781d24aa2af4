"""CLI entry point for openapi-assembler."""

from pathlib import Path

import click
from pydantic import ValidationError

from openapi_assembler.builder.diagnostics import Diagnostic, DocumentBuildError
from openapi_assembler.builder.openapi import BuildResult, build_openapi
from openapi_assembler.config import DEFAULT_CONFIG_FILE, AssemblerConfig, load_config
from openapi_assembler.descriptor.manifest import ManifestError, load_manifest
from openapi_assembler.log import configure_logging
from openapi_assembler.render import render


def _load_config(config_path: Path) -> AssemblerConfig:
    try:
        return load_config(config_path)
    except ValidationError as e:
        raise click.ClickException(f"invalid configuration in {config_path}: {e}") from e


def _build(manifest_path: Path, config: AssemblerConfig) -> BuildResult:
    try:
        manifest = load_manifest(manifest_path)
    except ManifestError as e:
        raise click.ClickException(str(e)) from e
    return build_openapi(
        manifest.info,
        manifest.handlers,
        components=manifest.components,
        modifiers=manifest.modifiers(),
        config=config,
    )


def _echo_diagnostics(diagnostics: list[Diagnostic]) -> None:
    for d in diagnostics:
        click.echo(f"  {d}", err=True)


def _output_format(output: Path, fmt: str | None, config: AssemblerConfig) -> str:
    if fmt:
        return fmt
    if output.suffix == ".json":
        return "json"
    if output.suffix in (".yaml", ".yml"):
        return "yaml"
    return config.output_format


@click.group()
def main():
    """openapi-assembler — build OpenAPI documents from API descriptors."""
    pass


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the rendered document.")
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "yaml"]), help="Output format (default: from file suffix or config).")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, type=click.Path(path_type=Path), help="Configuration file.")
@click.option("--strict", is_flag=True, default=False, help="Fail on any diagnostic, not only fatal ones.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def build(manifest_path: Path, output: Path, fmt: str | None, config_path: Path, strict: bool, verbose: bool):
    """Build and render the OpenAPI document described by a manifest."""
    configure_logging(verbose)
    config = _load_config(config_path)
    if strict:
        config = config.model_copy(update={"strict": True})

    click.echo(f"Building {manifest_path}...")
    result = _build(manifest_path, config)
    if result.diagnostics:
        click.echo(f"{len(result.diagnostics)} diagnostic(s):", err=True)
        _echo_diagnostics(result.diagnostics)

    try:
        document = result.finalize(strict=config.strict)
    except DocumentBuildError as e:
        raise click.ClickException(f"document is not ready for rendering: {e}") from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render(document, _output_format(output, fmt, config)), encoding="utf-8")
    click.echo(f"OpenAPI document saved to {output}")


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, type=click.Path(path_type=Path), help="Configuration file.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def check(ctx: click.Context, manifest_path: Path, config_path: Path, verbose: bool):
    """Report diagnostics for a manifest without writing anything."""
    configure_logging(verbose)
    result = _build(manifest_path, _load_config(config_path))
    if result.ok:
        click.echo("No problems found.")
        return
    click.echo(f"{len(result.diagnostics)} diagnostic(s):")
    for d in result.diagnostics:
        click.echo(f"  {d}")
    ctx.exit(1)
