import json
from pathlib import Path
from typing import List, Optional

import typer

from .config import Settings
from .logging import get_logger
from .grouping.cluster import ClusterStrategy, InvalidThresholdError
from .grouping.hash import ImageReadError, generate_fingerprint
from .grouping.model import group_photos

app = typer.Typer(help="photolot – group marketplace photos by item", no_args_is_help=True)


def expand_photo_paths(inputs: List[Path], settings: Settings) -> List[Path]:
    """Keep files as given and replace directories with their image files, sorted by name."""
    paths: List[Path] = []
    for entry in inputs:
        if entry.is_dir():
            paths.extend(
                sorted(
                    child for child in entry.iterdir()
                    if child.is_file() and child.suffix.lower() in settings.image_extensions
                )
            )
        else:
            paths.append(entry)
    return paths


@app.command()
def group(
    inputs: List[Path] = typer.Argument(..., help="Photo files or directories of photos, in upload order"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Minimum similarity (0-1) to join a group"),
    strategy: ClusterStrategy = typer.Option(ClusterStrategy.GREEDY, "--strategy", "-s", help="Clustering strategy"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Fingerprinting threads"),
    as_json: bool = typer.Option(False, "--json", help="Print groups as JSON"),
) -> None:
    """
    Group photos into one group per item using visual similarity.

    Photos that cannot be read are reported and left out of the groups.
    """
    logger = get_logger(__name__)
    settings = Settings()

    paths = expand_photo_paths(inputs, settings)
    if not paths:
        logger.error("No photos found in the given inputs")
        raise typer.Exit(code=1)

    if threshold is None:
        threshold = settings.threshold_for(strategy)

    try:
        logger.info(f"Grouping {len(paths)} photos ({strategy.value}, threshold {threshold})")
        result = group_photos(
            paths,
            threshold=threshold,
            strategy=strategy,
            max_workers=workers or settings.max_workers,
            id_prefix=settings.id_prefix,
        )
    except InvalidThresholdError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc

    if not result.groups:
        logger.error("None of the photos could be read")
        raise typer.Exit(code=1)

    if as_json:
        document = {
            "strategy": strategy.value,
            "threshold": threshold,
            "groups": [g.to_dict() for g in result.groups],
            "failures": [{"path": f.path, "reason": f.reason} for f in result.failures],
        }
        typer.echo(json.dumps(document, indent=2))
        return

    for photo_group in result.groups:
        typer.echo(
            f"{photo_group.id}: {len(photo_group.photos)} photo(s), "
            f"confidence {photo_group.confidence:.2f}, primary {photo_group.primary_photo}"
        )
    for failure in result.failures:
        typer.echo(f"skipped {failure.path}: {failure.reason}", err=True)
    typer.echo(f"{len(result.groups)} group(s) from {len(paths) - len(result.failures)} photo(s)")


@app.command()
def fingerprint(
    inputs: List[Path] = typer.Argument(..., help="Photo files or directories of photos"),
) -> None:
    """Print the hex difference hash of each photo."""
    failed = False
    for path in expand_photo_paths(inputs, Settings()):
        try:
            typer.echo(f"{generate_fingerprint(path)}  {path}")
        except ImageReadError as exc:
            typer.echo(str(exc), err=True)
            failed = True
    if failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
