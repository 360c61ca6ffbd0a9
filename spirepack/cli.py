import sys
from pathlib import Path

import click


@click.group()
def main() -> None:
    """spirepack - SPIRE agent sidecar supply for application droplets."""


@main.command()
@click.argument("build_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("cache_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("deps_dir", type=click.Path(file_okay=False, path_type=Path))
@click.argument("deps_idx")
@click.option(
    "--buildpack-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Buildpack root (default: from SPIREPACK_BUILDPACK_DIR or auto-detected).",
)
def supply(build_dir: Path, cache_dir: Path, deps_dir: Path, deps_idx: str, buildpack_dir: Path | None) -> None:
    """Install the SPIRE agent sidecar into DEPS_DIR/DEPS_IDX."""
    from pydantic import ValidationError

    from spirepack.supply.errors import SupplyError
    from spirepack.supply.layout import BuildLayout
    from spirepack.supply.log import setup_logging
    from spirepack.supply.resolver import EnvironmentSnapshot, ParameterResolver
    from spirepack.supply.settings import get_settings
    from spirepack.supply.supplier import Supplier

    try:
        settings = get_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid settings: {e}") from e
    if buildpack_dir is not None:
        settings = settings.model_copy(update={"buildpack_dir": buildpack_dir})
    setup_logging(settings.log_level)

    layout = BuildLayout.from_settings(
        settings,
        build_dir=build_dir,
        cache_dir=cache_dir,
        deps_dir=deps_dir,
        deps_idx=deps_idx,
    )
    resolver = ParameterResolver.from_snapshot(EnvironmentSnapshot.capture(), settings.binding_variable)

    try:
        Supplier(layout, resolver, settings).run()
    except SupplyError as e:
        click.echo(f"Supply failed: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("dep_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
def inspect(dep_dir: Path) -> None:
    """Show the sidecar processes written to DEP_DIR/launch.yml."""
    import yaml
    from pydantic import ValidationError

    from spirepack.supply.launch import read_launch_descriptor
    from spirepack.supply.layout import LAUNCH_FILE

    path = dep_dir / LAUNCH_FILE
    if not path.is_file():
        raise click.ClickException(f"No {LAUNCH_FILE} in {dep_dir}")
    try:
        document = read_launch_descriptor(path)
    except (yaml.YAMLError, ValidationError) as e:
        raise click.ClickException(f"Unreadable {LAUNCH_FILE}: {e}") from e

    for process in document.processes:
        click.echo(f"{process.type}: {process.command}")


if __name__ == "__main__":
    main()
