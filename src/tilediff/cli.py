"""tilediff command line interface.

Validates that the MLT and MVT codecs decode the same tiles to equivalent
features, then benchmarks decode throughput for the selected operations.

Example:
    # Validate, then benchmark geometry loading for both codecs
    $ tilediff --validate --mlt --mvt

    # Quick run on the first tile only, GeoJSON projection for MLT
    $ tilediff --one --mltjson

    # Custom tiles and config
    $ tilediff --mlt --tile bing/5-16-9 --config bench/tilediff.yaml
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .benchmark import ScenarioSelection, run_benchmarks
from .codecs import get_codec, is_codec_registered, load_codec
from .core.config import load_config
from .core.env_vars import is_ci_environment
from .core.errors import (
    CodecError,
    ConfigError,
    EquivalenceError,
    FixtureError,
    InvariantError,
    KeySetMismatch,
    TileDiffError,
    format_locator,
)
from .core.logging import configure_logging
from .core.models import (
    MLT,
    MVT,
    BenchmarkSettings,
    ProjectConfig,
    ScenarioResult,
    TileFixture,
)
from .fixtures import FileSystemResolver, FixtureLoader, JarEncoder, load_fixtures
from .validation import outcome_from_error, validate_tile

app = typer.Typer(
    name="tilediff",
    help="Cross-validate and benchmark MLT vs MVT tile decoding",
    add_completion=False,
)

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

USAGE_ERROR = (
    "Please provide at least one of --mlt, --mltjson, --mvt, or --mvtjson "
    "flags to run benchmarks."
)


@app.command()
def bench(
    mlt: bool = typer.Option(False, "--mlt", help="Benchmark MLT geometry loading"),
    mvt: bool = typer.Option(False, "--mvt", help="Benchmark MVT geometry loading"),
    mltjson: bool = typer.Option(
        False, "--mltjson", help="Benchmark MLT GeoJSON projection"
    ),
    mvtjson: bool = typer.Option(
        False, "--mvtjson", help="Benchmark MVT GeoJSON projection"
    ),
    validate: bool = typer.Option(
        False, "--validate", help="Check MLT/MVT equivalence before benchmarking"
    ),
    one: bool = typer.Option(False, "--one", help="Only use the first tile"),
    tiles: Optional[list[str]] = typer.Option(
        None, "--tile", "-t", help="Tile id to use instead of the configured tiles"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./tilediff.yaml if present)"
    ),
    min_time: Optional[float] = typer.Option(
        None, help="Minimum seconds of measurement per scenario"
    ),
    max_time: Optional[float] = typer.Option(
        None, help="Maximum seconds of measurement per scenario"
    ),
    strict_layers: bool = typer.Option(
        False, help="Fail validation when a MVT layer is missing from the MLT decode"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: Optional[Path] = typer.Option(None, help="Also write logs to this file"),
):
    """Validate and benchmark tile decoding.

    This command:
    1. Loads each tile's MVT fixture, MLT encoding and MLT metadata
       (regenerating the MLT artifacts with the encoder when missing)
    2. Optionally validates that both codecs agree, feature by feature
    3. Runs the selected benchmark scenarios one after another

    Any validation or feature-count failure stops the run with exit code 1.
    """
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING, log_file=log_file
    )

    selection = ScenarioSelection(mvt=mvt, mlt=mlt, mvtjson=mvtjson, mltjson=mltjson)
    if selection.empty:
        err_console.print(f"[bold red]Error:[/bold red] {USAGE_ERROR}")
        raise typer.Exit(code=1)

    try:
        project = load_config(config)
        _register_configured_codecs(project)

        settings = _settings_with_overrides(
            project.benchmark, min_time=min_time, max_time=max_time
        )
        # An explicit --max-time wins over the CI bound
        if max_time is None and is_ci_environment():
            ci_settings = settings.for_ci()
            if ci_settings.max_time < settings.max_time:
                console.print(
                    f"Running in CI, using smaller maxTime: {ci_settings.max_time:g} seconds"
                )
            settings = ci_settings

        required = selection.codecs() | ({MLT, MVT} if validate else set())
        for name in sorted(required):
            get_codec(name)

        tile_ids = list(tiles) if tiles else list(project.tiles)
        if one:
            tile_ids = tile_ids[:1]

        fixtures = load_fixtures(tile_ids, _build_loader(project), on_skip=_report_skip)
        if not fixtures:
            err_console.print("[bold red]Error:[/bold red] No tile could be loaded")
            raise typer.Exit(code=1)

        if validate:
            _validate_all(fixtures, strict_layers)

        run_benchmarks(
            fixtures,
            selection,
            settings,
            on_tile=_report_tile,
            on_result=_report_result,
        )

    except EquivalenceError as e:
        _report_equivalence_error(e)
        raise typer.Exit(code=1) from e
    except CodecError as e:
        err_console.print(f"[bold red]Decode failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except InvariantError as e:
        err_console.print(f"[bold red]Invariant violated:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except (ConfigError, FixtureError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except TileDiffError as e:
        err_console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _settings_with_overrides(
    settings: BenchmarkSettings, **overrides: Optional[float]
) -> BenchmarkSettings:
    values = {k: v for k, v in overrides.items() if v is not None}
    if not values:
        return settings
    try:
        return BenchmarkSettings(**{**settings.model_dump(), **values})
    except ValidationError as e:
        raise ConfigError(f"Invalid benchmark options: {e}") from e


def _register_configured_codecs(project: ProjectConfig) -> None:
    for name, import_path in project.codecs.items():
        load_codec(name, import_path)


def _build_loader(project: ProjectConfig) -> FixtureLoader:
    encoder = None
    if project.encoder is not None:
        encoder = JarEncoder(project.encoder, project.fixtures_dir, project.expected_dir)

    metadata_parser = None
    if is_codec_registered(MLT):
        metadata_parser = get_codec(MLT).parse_metadata

    return FixtureLoader(
        FileSystemResolver(project.fixtures_dir, project.expected_dir),
        encoder=encoder,
        metadata_parser=metadata_parser,
    )


def _validate_all(fixtures: list[TileFixture], strict_layers: bool) -> None:
    candidate = get_codec(MLT)
    reference = get_codec(MVT)
    for fixture in fixtures:
        console.print(f"Validating result for {escape(fixture.tile)}")
        validate_tile(fixture, candidate, reference, strict_layers=strict_layers)
        console.print(f" [green]✔[/green] passed for {escape(fixture.tile)}")


def _report_skip(tile: str, error: FixtureError) -> None:
    err_console.print(
        f"[yellow]Skipping {escape(tile)}:[/yellow] {escape(str(error))}"
    )


def _report_tile(fixture: TileFixture) -> None:
    console.print(f"Running benchmarks for {escape(fixture.tile)}")


def _report_result(result: ScenarioResult) -> None:
    console.print(escape(result.summary))
    console.print(escape(result.count_line))


def _report_equivalence_error(error: EquivalenceError) -> None:
    outcome = outcome_from_error(error)
    locator = format_locator(outcome.tile, outcome.layer, outcome.feature_index)
    err_console.print(
        f"[bold red]Validation failed[/bold red] ({outcome.reason}) for {escape(locator)}"
    )
    if isinstance(error, KeySetMismatch):
        err_console.print(escape(error.candidate_keys))
        err_console.print("  vs")
        err_console.print(escape(error.reference_keys))
    else:
        err_console.print(escape(outcome.message))


if __name__ == "__main__":
    app()
