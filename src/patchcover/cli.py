"""CLI interface for patch-cover"""

import json
import logging
from pathlib import Path
from typing import Optional

import click

from patchcover.application.patch_cover_service import PatchCoverService
from patchcover.application.quality_gate import QualityGate, parse_report_summary
from patchcover.domain.errors import PatchCoverError
from patchcover.domain.models.coverage_report import CoverageReport
from patchcover.domain.templates.report_template import ReportTemplateRenderer
from patchcover.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from patchcover.infrastructure.file_filter import ProfileFilter

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _rewrite_profile(coverage_file: Path, profile_filter: ProfileFilter) -> None:
    """Strip excluded files from a coverage profile in place"""
    content = coverage_file.read_text(encoding="utf-8", errors="surrogateescape")
    coverage_file.write_text(
        profile_filter.filter_profile_text(content), encoding="utf-8", errors="surrogateescape"
    )
    logger.info(f"Rewrote {coverage_file} without excluded files")


def _render(report: CoverageReport, output_format: str, template: Optional[str]) -> str:
    if output_format == "json":
        return json.dumps(report.to_dict()) + "\n"
    return ReportTemplateRenderer(template).render(report)


@click.group()
@click.version_option(package_name="patch-cover")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .patch-cover.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """patch-cover - coverage of the lines a patch changed"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("coverage_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("diff_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument(
    "previous_coverage_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["template", "json"], case_sensitive=False),
    help="Output format: template, json. Overrides config.",
)
@click.option("--tmpl", type=str, help="Template string overriding the default report template")
@click.option(
    "--uncovered-out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="File to save uncovered lines to. Overrides config.",
)
@click.option("--no-uncovered-out", is_flag=True, help="Don't save uncovered lines to a file")
@click.option(
    "--rewrite-profile",
    is_flag=True,
    help="Remove excluded files from COVERAGE_FILE in place before processing",
)
@click.option("--gate", is_flag=True, help="Fail when coverage is below the configured thresholds")
@click.pass_context
def report(
    ctx,
    coverage_file: Path,
    diff_file: Path,
    previous_coverage_file: Optional[Path],
    output: Optional[str],
    tmpl: Optional[str],
    uncovered_out: Optional[Path],
    no_uncovered_out: bool,
    rewrite_profile: bool,
    gate: bool,
):
    """Compute patch coverage.

    COVERAGE_FILE: Go coverage profile for the code after the patch,
    e.g. go test -coverprofile=coverage.out ./...

    DIFF_FILE: Unified diff of the patch, e.g. git diff -U0 origin/main > patch.diff

    PREVIOUS_COVERAGE_FILE: Optional coverage profile for the code before the patch
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    output_config = config_manager.get_output_config()

    try:
        profile_filter = ProfileFilter(
            patterns=config_manager.get_exclude_patterns(),
            module_prefix=config_manager.get_module_prefix(),
        )
        if rewrite_profile:
            _rewrite_profile(coverage_file, profile_filter)

        uncovered_path = None
        if not no_uncovered_out:
            uncovered_path = uncovered_out or output_config.uncovered_lines_file

        service = PatchCoverService(
            profile_filter=profile_filter,
            uncovered_lines_path=uncovered_path,
        )
        coverage = service.process_files(coverage_file, diff_file, previous_coverage_file)

        output_format = (output or output_config.format).lower()
        click.echo(_render(coverage, output_format, tmpl or output_config.template), nl=False)

        if gate:
            result = QualityGate(config_manager.get_thresholds()).evaluate_report(coverage)
            click.echo(result.describe(), err=True)
            if not result.passed:
                _die("Coverage is below the configured thresholds", verbose=verbose)

    except click.ClickException:
        raise
    except (PatchCoverError, OSError) as e:
        _die(f"Processing error: {e}", verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)


@cli.command()
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def gate(ctx, report_file: Path):
    """Check a saved text report against the configured thresholds.

    REPORT_FILE: Output of the report command rendered with the default template
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)

    try:
        summary = parse_report_summary(report_file.read_text(encoding="utf-8"))
        result = QualityGate(config_manager.get_thresholds()).evaluate(
            summary.service_coverage, summary.patch_coverage
        )
    except (PatchCoverError, OSError) as e:
        _die(f"Cannot read report: {e}", verbose=verbose, exc=e)

    click.echo(result.describe())
    if not result.passed:
        _die("Coverage is below the configured thresholds", verbose=verbose)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
