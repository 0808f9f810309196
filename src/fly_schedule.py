import argparse
import logging
import os
from typing import Dict

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from globe_flight.config import FlightConfig
from globe_flight.exceptions import InvalidConfigError
from globe_flight.helpers import FlightMode, GeoCoordinate, Waypoint
from globe_flight.simulator import FlightController

console = Console()

# ================================================================
# CONFIG
# ================================================================

def read_config(config_path: str) -> dict:
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Config file not found at {config_path}")
        raise
    console.print(f"[green]✓[/green] Config loaded successfully from {config_path}")
    return config or {}


def build_waypoints(config: dict, radius: float) -> Dict[str, Waypoint]:
    """One Waypoint per named [lat, lon] entry"""
    waypoints = {}
    for name, (lat, lon) in (config.get("waypoints") or {}).items():
        waypoints[name] = Waypoint.from_geo(GeoCoordinate(float(lat), float(lon), radius), name=name)
    return waypoints


def build_controller(config: dict) -> FlightController:
    flight_config = FlightConfig.from_dict(config.get("flight"))
    waypoints = build_waypoints(config, flight_config.globe_radius)

    schedule = []
    for name in config.get("schedule") or []:
        if name not in waypoints:
            raise InvalidConfigError(f"schedule refers to unknown waypoint '{name}'")
        schedule.append(waypoints[name])

    aircraft = config.get("aircraft") or {}
    if "initial_position" in aircraft:
        lat, lon = aircraft["initial_position"]
        initial_position = GeoCoordinate(float(lat), float(lon), flight_config.globe_radius)
    elif schedule:
        initial_position = schedule[0].position
    else:
        initial_position = GeoCoordinate(0.0, 0.0, flight_config.globe_radius)

    return FlightController(
        id_tag=aircraft.get("id", "PLANE-1"),
        initial_position=initial_position,
        config=flight_config,
        schedule=schedule,
    )


# ================================================================
# RUN MODES
# ================================================================

def run_headless(controller: FlightController, max_ticks: int) -> int:
    """Tick until the schedule is exhausted or max_ticks is reached"""
    ticks = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total} ticks"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Flying {controller.id_tag}", total=max_ticks)
        while ticks < max_ticks and controller.flight_mode != FlightMode.HALTED:
            controller.tick()
            ticks += 1
            progress.advance(task)
    return ticks


def run_plot(controller: FlightController, max_ticks: int, save: str = None) -> int:
    if save:
        import matplotlib
        matplotlib.use("Agg")
    from globe_flight.visualizer import GlobeVisualizer

    viz = GlobeVisualizer(controller.config.globe_radius)
    viz.attach(controller)

    if save:
        ticks = run_headless(controller, max_ticks)
        os.makedirs(os.path.dirname(save) or ".", exist_ok=True)
        viz.save(save)
        console.print(f"[green]✓[/green] Final frame saved to {save}")
        viz.close()
        return ticks

    viz.animate(controller, frames=max_ticks)
    viz.show()
    return max_ticks


def print_summary(controller: FlightController, ticks: int):
    state = controller.get_state()
    table = Table(show_header=False)
    table.add_row("Ticks", str(ticks))
    for key in ("mode", "cursor", "departure", "destination", "remaining_legs", "trail_length"):
        table.add_row(key.replace("_", " ").title(), str(state[key]))
    if state["lat_lon"]:
        table.add_row("Lat / Lon", f"{state['lat_lon'][0]:.3f}, {state['lat_lon'][1]:.3f}")
    console.print(table)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--config",
        default=os.path.join("config", "flight_config.yaml"),
        help="YAML file with flight settings, waypoints and schedule."
    )
    parser.add_argument(
        "--mode",
        choices=["headless", "plot"],
        default="headless",
        help="Run without graphics or animate on a 3D globe."
    )
    parser.add_argument("--ticks", type=int, default=5000, help="Maximum number of ticks.")
    parser.add_argument("--speed", type=float, default=None, help="Override the per-tick progress from the config.")
    parser.add_argument("--save", default=None, help="Plot mode: save the final frame here instead of showing a window.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    console.print(Panel.fit(f"[bold blue]Globe Flight - {args.mode} mode[/bold blue]"))
    controller = build_controller(read_config(args.config))
    if args.speed is not None:
        controller.set_speed(args.speed)
    if args.mode == "plot":
        ticks = run_plot(controller, args.ticks, args.save)
    else:
        ticks = run_headless(controller, args.ticks)

    console.print("\n[bold green]Flight Finished[/bold green]")
    print_summary(controller, ticks)
