"""
CLI entry point for GIF Miner.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .config import (
    ExtractionKind,
    ExtractionState,
    ResizeMethod,
    get_codec_config,
    get_dedup_config,
    get_edit_config,
    get_extraction_config,
    get_fps_reduce_config,
    get_logging_config,
    get_work_dir,
    reload_config,
)
from .errors import GifMinerError
from .logging import get_logger, set_level, set_log_file

logger = get_logger(__name__)
console = Console()


def _codec():
    from .codec import GifsicleCodec
    return GifsicleCodec(get_codec_config())


@click.group()
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Config YAML file")
@click.option("--log-level", default=None, help="Override log level (DEBUG, INFO, ...)")
def main(config: Optional[str], log_level: Optional[str]):
    """GIF Miner - perceptual dedup, batched extraction and frame rate reduction."""
    if config:
        reload_config(config)
    logging_config = get_logging_config()
    set_level(log_level or logging_config.level)
    set_log_file(logging_config.log_file)


@main.command("dedup")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--quality", "-q", type=int, default=None, help="Encoder quality 1-100")
@click.option("--similarity", "-s", type=int, default=None, help="Required similarity 0-100")
@click.option("--colors", type=int, default=None, help="Palette size (>= 2)")
@click.option("--indexed/--reencode", default=None, help="Remux original frames instead of re-encoding")
def dedup_cmd(
    source: Path,
    output: Path,
    quality: Optional[int],
    similarity: Optional[int],
    colors: Optional[int],
    indexed: Optional[bool],
):
    """Remove visually redundant consecutive frames."""
    from .progress import TqdmProgressSink
    from .workers import DedupWorker

    options = get_dedup_config()
    overrides = {
        "quality": quality,
        "similarity_threshold": similarity,
        "target_colors": colors,
        "use_indexed_palette": indexed,
    }
    options = options.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    sink = TqdmProgressSink()
    try:
        job = DedupWorker(_codec(), sink=sink, config=options).submit(source, output)
        result = job.join()
    except GifMinerError as e:
        raise click.ClickException(str(e))
    finally:
        sink.close()

    if job.error is not None:
        raise click.ClickException(str(job.error))

    console.print(f"[green]Created[/] {result.output}")
    console.print(f"  Frames: {result.total_frames} -> {result.kept_frames} (removed {result.duplicates_removed})")
    console.print(
        f"  Size: {result.original_size_kb:.1f}KB -> {result.new_size_kb:.1f}KB "
        f"({result.compression_pct}% smaller)"
    )


@main.command("reduce-fps")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--keep-interval", "-k", type=int, default=None, help="Collapse up to N fast frames into one")
@click.option("--threshold", "-t", type=int, default=None, help="Frames at or above this delay (ms) are kept")
@click.option("--max-delay", "-m", type=int, default=None, help="Upper bound for any new delay (ms)")
def reduce_fps_cmd(
    source: Path,
    output: Path,
    keep_interval: Optional[int],
    threshold: Optional[int],
    max_delay: Optional[int],
):
    """Drop fast frames to cap the frame rate."""
    from .modules.fps_reducer import FrameRateReducer

    config = get_fps_reduce_config()
    overrides = {"keep_interval": keep_interval, "delay_threshold": threshold, "max_delay": max_delay}
    config = config.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    try:
        result = FrameRateReducer(_codec(), config).apply(source, output)
    except GifMinerError as e:
        raise click.ClickException(str(e))

    console.print(f"[green]Created[/] {output}")
    console.print(f"  Frames: {result.original_count} -> {len(result.kept_indices)} (dropped {result.dropped})")


@main.command("extract")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--work-dir", "-w", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory receiving the artifact folders")
@click.option("--kind", type=click.Choice(["fullframes", "previews", "all"]), default="all")
@click.option("--metadata-source", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="Sequence to read the frame count from with --no-prepare (defaults to SOURCE)")
@click.option("--prepare/--no-prepare", default=True,
              help="Explode a full-palette unoptimized copy (needed for optimized sources)")
@click.option("--batch-size", "-b", type=int, default=None)
def extract_cmd(
    source: Path,
    work_dir: Optional[Path],
    kind: str,
    metadata_source: Optional[Path],
    prepare: bool,
    batch_size: Optional[int],
):
    """Explode SOURCE into frame.<i> / preview.<i> artifacts in batches."""
    from .progress import TqdmProgressSink
    from .workers import ExtractionSupervisor

    config = get_extraction_config()
    if batch_size is not None:
        config = config.model_copy(update={"batch_size": batch_size})
    work_dir = work_dir or get_work_dir() or source.parent

    sink = TqdmProgressSink()
    try:
        supervisor = ExtractionSupervisor(_codec(), sink=sink, config=config)
        kinds = list(ExtractionKind) if kind == "all" else [ExtractionKind(kind)]
        prepared = supervisor.prepare(source, work_dir) if prepare else None
        for k in kinds:
            supervisor.start(k, source, work_dir, metadata_source, prepared=prepared)

        try:
            supervisor.wait()
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling...[/]")
            supervisor.cancel()
    except GifMinerError as e:
        raise click.ClickException(str(e))
    finally:
        sink.close()

    failed = False
    for k in kinds:
        controller = supervisor.controllers[k]
        out_dir = supervisor.output_dir(work_dir, source, k)
        if controller.state == ExtractionState.FAILED:
            failed = True
            console.print(f"[red]{k.value} failed:[/] {controller.job.error}")
        else:
            console.print(f"[green]{k.value}[/] {controller.job.completed_units}/{controller.job.total_units} -> {out_dir}")
    if failed:
        sys.exit(1)


def _parse_delays(ctx, param, value: Optional[str]) -> Optional[list[int]]:
    """Comma-separated millisecond delays, e.g. ``80,80,120``."""
    if value is None:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter("expected comma-separated integers (ms)")


def _editor():
    from .modules.editor import SequenceEditor
    return SequenceEditor(_codec(), get_edit_config(), work_dir=get_work_dir())


@main.command("slice")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--start", "-s", type=int, required=True, help="First frame (inclusive)")
@click.option("--end", "-e", type=int, required=True, help="Last frame (inclusive)")
@click.option("--delays", callback=_parse_delays, default=None,
              help="Per-frame delays in ms for the slice (source delays if omitted)")
@click.option("--optimize/--no-optimize", default=None, help="Run an -O3 pass on the result")
def slice_cmd(source: Path, output: Path, start: int, end: int, delays: Optional[list[int]], optimize: Optional[bool]):
    """Save frames START..END of SOURCE as a new GIF."""
    try:
        _editor().slice(source, output, start, end, delays, optimize=optimize)
    except GifMinerError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Created[/] {output} (frames {start}-{end})")


@main.command("delete")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--start", "-s", type=int, required=True, help="First frame to delete (inclusive)")
@click.option("--end", "-e", type=int, required=True, help="Last frame to delete (inclusive)")
@click.option("--optimize/--no-optimize", default=None, help="Run an -O3 pass on the result")
def delete_cmd(source: Path, output: Path, start: int, end: int, optimize: Optional[bool]):
    """Remove frames START..END from SOURCE."""
    try:
        _editor().delete(source, output, start, end, optimize=optimize)
    except GifMinerError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Created[/] {output} (removed frames {start}-{end})")


@main.command("resize")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--width", "-W", type=int, required=True)
@click.option("--height", "-H", type=int, required=True)
@click.option("--method", type=click.Choice([m.value for m in ResizeMethod]), default=None)
@click.option("--optimize/--no-optimize", default=None)
def resize_cmd(source: Path, output: Path, width: int, height: int, method: Optional[str], optimize: Optional[bool]):
    """Resize every frame of SOURCE."""
    try:
        _editor().resize(source, output, width, height, method=method, optimize=optimize)
    except GifMinerError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Created[/] {output} ({width}x{height})")


@main.command("set-delays")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--delays", callback=_parse_delays, default=None, help="One delay per frame in ms")
@click.option("--delay", type=int, default=None, help="Same delay (ms) for every frame")
def set_delays_cmd(source: Path, output: Path, delays: Optional[list[int]], delay: Optional[int]):
    """Rewrite the frame delays of SOURCE."""
    if (delays is None) == (delay is None):
        raise click.UsageError("Pass exactly one of --delays or --delay")

    editor = _editor()
    try:
        if delays is None:
            delays = [delay] * editor.codec.metadata(source).frame_count
        editor.set_delays(source, output, delays)
    except GifMinerError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Created[/] {output} ({len(delays)} delays)")


@main.command("stats")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def stats_cmd(source: Path):
    """Show frame count, duration and frame rate statistics."""
    from rich.table import Table

    from .modules.stats import compute_stats

    try:
        stats = compute_stats(_codec(), source)
    except GifMinerError as e:
        raise click.ClickException(str(e))

    table = Table(title=source.name)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Frames", str(stats.frame_count))
    table.add_row("Dimensions", f"{stats.width}x{stats.height}")
    table.add_row("Duration", f"{stats.total_duration:.2f}s")
    table.add_row("Average FPS", f"{stats.avg_fps:.2f}")
    table.add_row("Min FPS", f"{stats.min_fps:.2f}")
    table.add_row("Max FPS", f"{stats.max_fps:.2f}")
    table.add_row("File size", f"{stats.file_size_kb:.1f}KB")
    table.add_row("Optimized", "yes" if stats.is_optimized else "no")
    for rank, (fps, count) in enumerate(stats.common_fps, start=1):
        table.add_row(f"Common FPS #{rank}", f"{fps} ({count} frames)")

    console.print(table)


@main.command("info")
@click.option("--source", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None,
              help="Also report metadata for this file")
def info_cmd(source: Optional[Path]):
    """Check the external toolchain."""
    codec = _codec()
    try:
        console.print(f"gifski: {codec.version()}")
    except GifMinerError as e:
        console.print(f"[red]gifski unavailable:[/] {e}")

    if source is not None:
        try:
            meta = codec.metadata(source)
        except GifMinerError as e:
            raise click.ClickException(str(e))
        console.print(f"{source.name}: {meta.frame_count} frames, {meta.width}x{meta.height}, "
                      f"{len(meta.delays)} delays, optimized={meta.is_optimized}")


if __name__ == "__main__":
    main()
