"""Click CLI commands for SpatialView."""

import asyncio
import logging
from typing import Optional

import click

from .example import create_example_spatial_model
from .geometry import WindingMode
from .glb import export_glb
from .metrics import SimulatedValueSource
from .scene import MeshRole, SceneComposer
from .serialization import load_spatial_model, load_walls, save_spatial_model

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """SpatialView CLI for stacking floor plans into 3D building scenes."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')


@cli.command()
@click.option('--output', '-o', default='example_building.json', help='Output JSON path')
def example(output: str):
    """Write the example office building as a spatial-model JSON file."""
    save_spatial_model(create_example_spatial_model(), output)
    click.echo(f"Wrote example model to {output}")


def _load(model_path: Optional[str], walls_path: Optional[str]) -> SceneComposer:
    try:
        model = load_spatial_model(model_path) if model_path else None
        walls = load_walls(walls_path) if walls_path else None
    except Exception as e:
        logger.error(f"Error loading input: {e}")
        raise click.ClickException(str(e))
    if model is None and not walls:
        raise click.UsageError("Provide a spatial model and/or --walls")
    return SceneComposer(model, walls)


@cli.command()
@click.argument('model_path', required=False, type=click.Path(exists=True, dir_okay=False))
@click.option('--walls', 'walls_path', type=click.Path(exists=True, dir_okay=False),
              help='Wall-segment JSON used when the model has no zones')
def layout(model_path: Optional[str], walls_path: Optional[str]):
    """Print effective floor elevations and the camera frame."""
    composer = _load(model_path, walls_path)
    composer.layout()
    if composer.model is not None:
        for floor, elevation in zip(composer.model.building.floors, composer.elevations):
            raised = ' (raised)' if elevation > floor.elevation else ''
            click.echo(f"{floor.id:<12} nominal={floor.elevation:6.2f} "
                       f"effective={elevation:6.2f}{raised}")
    cam = composer.camera
    click.echo(f"extent={cam.max_horizontal_extent:.2f} height={cam.total_height:.2f} "
               f"distance={cam.distance:.2f} radius=[{cam.lower_radius:.1f}, "
               f"{cam.upper_radius:.1f}]")


@cli.command()
@click.argument('model_path', required=False, type=click.Path(exists=True, dir_okay=False))
@click.option('--walls', 'walls_path', type=click.Path(exists=True, dir_okay=False),
              help='Wall-segment JSON used when the model has no zones')
@click.option('--output', '-o', default='building.glb', help='Output GLB file path')
@click.option('--floor', '-f', 'floor_index', type=int, default=None,
              help='Selected floor index (floors above it are hidden)')
@click.option('--metric', '-m', default=None, help='Metric used to color zones')
@click.option('--time', '-t', 'time_index', type=int, default=0, help='Time index')
@click.option('--simulate', is_flag=True, help='Use random readings instead of recorded ones')
@click.option('--seed', type=int, default=None, help='Seed for --simulate')
@click.option('--winding', type=click.Choice([m.value for m in WindingMode]),
              default=WindingMode.OUTWARD.value, help='Triangle orientation')
@click.option('--wall-mode', is_flag=True,
              help='Render wall boxes instead of zone solids (zone outlines without --walls)')
def export(model_path: Optional[str], walls_path: Optional[str], output: str,
           floor_index: Optional[int], metric: Optional[str], time_index: int,
           simulate: bool, seed: Optional[int], winding: str, wall_mode: bool):
    """Compose the scene and write it as GLB."""
    composer = _load(model_path, walls_path)
    composer.winding = WindingMode(winding)
    composer.wall_mode = wall_mode
    if simulate:
        composer.value_source = SimulatedValueSource(composer.thresholds, seed=seed)
    composer.select_floor(floor_index)
    composer.layout()
    if metric:
        composer.set_metric_context(metric, time_index)
    try:
        path = export_glb(composer, output)
    except Exception as e:
        logger.error(f"Error exporting scene: {e}")
        raise click.ClickException(str(e))
    click.echo(f"Wrote {path}")


@cli.command()
@click.argument('model_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--metric', '-m', required=True, help='Metric used to color zones')
@click.option('--ticks', type=int, default=4, help='Number of ticks to run')
@click.option('--interval', type=click.FloatRange(min=0, min_open=True), default=0.5,
              help='Seconds between ticks')
@click.option('--simulate', is_flag=True, help='Use random readings instead of recorded ones')
@click.option('--seed', type=int, default=None, help='Seed for --simulate')
def play(model_path: str, metric: str, ticks: int, interval: float,
         simulate: bool, seed: Optional[int]):
    """Run timed playback and print each zone's band color per tick."""
    composer = _load(model_path, None)
    if simulate:
        composer.value_source = SimulatedValueSource(composer.thresholds, seed=seed)
    composer.layout()
    composer.set_metric_context(metric, 0)
    try:
        asyncio.run(async_play(composer, ticks, interval))
    except Exception as e:
        logger.error(f"Error during playback: {e}")
        raise click.ClickException(str(e))


async def async_play(composer: SceneComposer, ticks: int, interval: float):
    """Async helper that plays *ticks* steps then cancels the playback task."""
    task = composer.start_playback(interval)
    try:
        seen = 0
        while seen < ticks and task.running:
            await asyncio.sleep(interval / 4)
            if task.ticks > seen:
                seen = task.ticks
                _echo_materials(composer)
    finally:
        await composer.stop_playback()


def _echo_materials(composer: SceneComposer):
    click.echo(f"t={composer.time_index}")
    for mesh in composer.root.iter_meshes():
        if mesh.zone_id is None or mesh.role != MeshRole.WALLS:
            continue
        r, g, b = mesh.state.color
        flag = ' uncertain' if mesh.state.emissive else ''
        click.echo(f"  {mesh.zone_id:<12} rgb=({r:.2f}, {g:.2f}, {b:.2f}) "
                   f"alpha={mesh.state.alpha:.2f}{flag}")


if __name__ == '__main__':
    cli()
