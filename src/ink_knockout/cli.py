"""Command-line interface for ink-knockout."""

import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from .core.pipeline import KnockoutOptions, KnockoutPipeline, knockout_many
from .recolor import LayerIndex
from .utils.image import load_image, save_image, save_mask, validate_image_dimensions
from .utils.profiler import StageProfiler

STAGE_MASKS = ("ink", "ink_shaped", "edges", "barrier", "background", "peeled")


class ProgressBar:
    """Simple progress bar for CLI operations."""

    def __init__(self, total_steps: int, description: str = "Processing"):
        self.total_steps = total_steps
        self.current_step = 0
        self.description = description
        self.start_time = time.time()

    def update(self, step_name: str) -> None:
        """Update progress bar with current step."""
        self.current_step += 1
        percentage = (self.current_step / self.total_steps) * 100
        elapsed = time.time() - self.start_time

        bar_length = 30
        filled_length = int(bar_length * self.current_step // self.total_steps)
        bar = "█" * filled_length + "░" * (bar_length - filled_length)

        click.echo(
            f"\r{self.description}: [{bar}] {percentage:.1f}% - {step_name}",
            nl=False,
        )

        if self.current_step == self.total_steps:
            click.echo(f" ✓ Complete ({elapsed:.1f}s)")


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _fail(error: Exception, verbose: bool) -> None:
    click.echo(f"\n❌ Error: {error}", err=True)
    if verbose:
        import traceback

        traceback.print_exc()
    sys.exit(1)


def _save_stages(stages, directory: Path, stem: str) -> None:
    for name in STAGE_MASKS:
        save_mask(getattr(stages, name), directory / f"{stem}_{name}.png")


@click.command()
@click.argument(
    "input_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(path_type=Path),
    help="Output PNG path, or a directory when several inputs are given",
)
@click.option("--ink", default=64.0, type=float,
              help="Base ink threshold blended with Otsu (default: 64)")
@click.option("--gap", default=-1, type=int,
              help="Ink morphology: >0 dilates, <0 erodes (default: -1)")
@click.option("--edge", default=18, type=click.IntRange(0, 255),
              help="Sobel magnitude threshold for edge walls (default: 18)")
@click.option("--bg-tol", default=24, type=click.IntRange(min=0),
              help="Reserved, no effect (default: 24)")
@click.option("--feather", default=1.2, type=click.FloatRange(min=0),
              help="Alpha blur radius in px, 0 disables (default: 1.2)")
@click.option("--padding", default=24, type=click.IntRange(min=0),
              help="Reserved, no effect (default: 24)")
@click.option("--save-stages", type=click.Path(file_okay=False, path_type=Path),
              help="Directory for intermediate mask PNGs (single input only)")
@click.option("--workers", default=None, type=click.IntRange(min=1),
              help="Worker threads for several inputs (default: auto)")
@click.option("--profile", is_flag=True, help="Print per-stage timings")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing output")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(
    input_files: Tuple[Path, ...],
    output: Path,
    ink: float,
    gap: int,
    edge: int,
    bg_tol: int,
    feather: float,
    padding: int,
    save_stages: Optional[Path],
    workers: Optional[int],
    profile: bool,
    force: bool,
    verbose: bool,
) -> None:
    """Knock the background out of drawn artwork, leaving transparency.

    Examples:
        ink-knockout doodle.png -o doodle_cut.png
        ink-knockout sketch.jpg --gap 1 --feather 0 -o sketch.png
        ink-knockout *.png --workers 4 -o cutouts/
    """
    _configure_logging(verbose)

    if save_stages is not None and len(input_files) > 1:
        raise click.UsageError("--save-stages works with a single input only")

    profiler = StageProfiler() if profile else None

    try:
        options = KnockoutOptions(
            ink=ink, gap=gap, edge=edge, bg_tol=bg_tol, feather=feather, padding=padding
        )

        if len(input_files) == 1:
            _knockout_single(input_files[0], output, options, save_stages, profiler,
                             force, verbose)
        else:
            _knockout_batch(input_files, output, options, workers, profiler, force)

        if profiler is not None:
            profiler.print_summary()

    except Exception as e:
        _fail(e, verbose)


def _confirm_overwrite(path: Path, force: bool) -> bool:
    if path.exists() and not force:
        return click.confirm(f"Output file {path} exists. Overwrite?")
    return True


def _knockout_single(input_file: Path, output: Path, options: KnockoutOptions,
                     save_stages: Optional[Path], profiler: Optional[StageProfiler],
                     force: bool, verbose: bool) -> None:
    if output.is_dir():
        output = output / f"{input_file.stem}.png"

    if not _confirm_overwrite(output, force):
        click.echo("Aborted.")
        return

    progress = ProgressBar(3, "Knocking out")

    progress.update("Loading image")
    image, (height, width) = load_image(input_file)
    validate_image_dimensions(image)
    if verbose:
        click.echo(f"\nImage dimensions: {width}x{height}")

    progress.update("Matting")
    stages = KnockoutPipeline(options, profiler=profiler).run_stages(image)

    progress.update("Saving file")
    save_image(stages.output, output)
    if save_stages is not None:
        _save_stages(stages, save_stages, input_file.stem)

    kept = int((stages.alpha > 0).sum())
    click.echo(f"✅ Successfully created {output}")
    click.echo(f"   Size: {stages.width}x{stages.height}")
    click.echo(f"   Visible pixels: {kept:,} of {stages.width * stages.height:,}")
    if verbose:
        click.echo(f"   Otsu threshold: {stages.otsu}, ink threshold: {stages.ink_threshold}")
        click.echo(f"   Subject region: {stages.region.as_tuple()}")


def _knockout_batch(input_files: Tuple[Path, ...], output: Path, options: KnockoutOptions,
                    workers: Optional[int], profiler: Optional[StageProfiler],
                    force: bool) -> None:
    if output.exists() and not output.is_dir():
        raise ValueError(f"Output must be a directory for {len(input_files)} inputs: {output}")
    output.mkdir(parents=True, exist_ok=True)

    targets = [output / f"{path.stem}.png" for path in input_files]
    existing = [t for t in targets if t.exists()]
    if existing and not force:
        if not click.confirm(f"{len(existing)} output files exist. Overwrite?"):
            click.echo("Aborted.")
            return

    progress = ProgressBar(3, f"Knocking out {len(input_files)} images")

    progress.update("Loading images")
    images = []
    for path in input_files:
        image, _ = load_image(path)
        validate_image_dimensions(image)
        images.append(image)

    progress.update("Matting")
    results = knockout_many(images, options, max_workers=workers, profiler=profiler)

    progress.update("Saving files")
    for result, target in zip(results, targets):
        save_image(result.image, target)

    click.echo(f"✅ Wrote {len(results)} images to {output}")


@click.command()
@click.argument("svg_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path),
              help="Output SVG path")
@click.option("--layer", "-l", required=True, help="Layer name (data-name attribute)")
@click.option("--fill", "fill_color", help="Flat fill colour, e.g. '#ff0066'")
@click.option("--gradient", "gradient_colors", multiple=True,
              help="Gradient stop colour; repeat for more stops")
@click.option("--vertical", is_flag=True, help="Vertical gradient instead of horizontal")
@click.option("--soft-light", "soft_light", type=click.FloatRange(0, 1),
              help="Soft-light blend with this opacity")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def recolor_main(
    svg_file: Path,
    output: Path,
    layer: str,
    fill_color: Optional[str],
    gradient_colors: Tuple[str, ...],
    vertical: bool,
    soft_light: Optional[float],
    verbose: bool,
) -> None:
    """Recolour a named layer of an SVG.

    Examples:
        ink-recolor art.svg -l Hat --fill '#3366ff' -o art_blue.svg
        ink-recolor art.svg -l Sky --gradient '#123' --gradient '#9cf' --vertical -o out.svg
    """
    _configure_logging(verbose)

    chosen = sum([fill_color is not None, bool(gradient_colors), soft_light is not None])
    if chosen != 1:
        raise click.UsageError("Choose exactly one of --fill, --gradient or --soft-light")

    try:
        index = LayerIndex.from_file(svg_file)
        if layer not in index.names():
            click.echo(f"⚠️  Layer '{layer}' not found; available: {', '.join(index.names())}")

        if fill_color is not None:
            touched = index.set_flat_fill(layer, fill_color)
            click.echo(f"Filled {touched} shapes of '{layer}' with {fill_color}")
        elif gradient_colors:
            orientation = "vertical" if vertical else "horizontal"
            gradient_id = index.set_gradient_fill(layer, list(gradient_colors), orientation)
            click.echo(f"Applied {orientation} gradient {gradient_id} to '{layer}'")
        else:
            touched = index.set_soft_light(layer, soft_light)
            click.echo(f"Soft-light at {soft_light} on {touched} roots of '{layer}'")

        index.write(output)
        click.echo(f"✅ Successfully created {output}")

    except Exception as e:
        _fail(e, verbose)


if __name__ == "__main__":
    main()
