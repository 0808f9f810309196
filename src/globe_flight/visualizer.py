import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from typing import List, Optional, Sequence, Tuple

from globe_flight.flight_calcs import FlightLeg
from globe_flight.helpers import Waypoint
from globe_flight.simulator import FlightController, FlightUpdate
from globe_flight.trail import TrailBuffer
from globe_flight.transforms import MODEL_FORWARD


def to_plot_axes(points: np.ndarray) -> np.ndarray:
    """Globe frame is Y-up, matplotlib is Z-up: (x, y, z) -> (z, x, y)"""
    return np.asarray(points, dtype=float).reshape(-1, 3)[:, [2, 0, 1]]


# ============================================================================
# TRAIL LINE
# ============================================================================

class TrailLine:
    """
    Polyline drawn from a TrailBuffer.

    The line artist is rebuilt from the full trail on every update; the new
    artist is created before the old one is removed so a failed draw leaves
    the previous trail on screen.
    """

    def __init__(self, ax, color: str = 'red', linewidth: float = 1.5):
        self.ax = ax
        self.color = color
        self.linewidth = linewidth
        self.artist = None

    def update(self, trail: TrailBuffer):
        points = to_plot_axes(trail.as_array())
        (line,) = self.ax.plot(points[:, 0], points[:, 1], points[:, 2], '-',
                               color=self.color, linewidth=self.linewidth, alpha=0.8)
        self.remove()
        self.artist = line

    def remove(self):
        if self.artist is not None:
            self.artist.remove()
            self.artist = None


# ============================================================================
# VISUALIZATION
# ============================================================================

class GlobeVisualizer:
    """Draws a flying object, its trail and its route on a 3D globe"""

    def __init__(self, globe_radius: float, figsize: Tuple[int, int] = (10, 10),
                 color: str = 'red'):
        self.fig = plt.figure(figsize=figsize)
        self.ax = self.fig.add_subplot(projection='3d')
        self.globe_radius = globe_radius
        self.color = color
        self.arrow_length = globe_radius * 0.08

        self.trail_line = TrailLine(self.ax, color=color)
        self._object_artists: List = []
        self._route_artist = None
        self._route_leg: Optional[FlightLeg] = None
        self.animation: Optional[FuncAnimation] = None

        self._draw_globe()

    def _draw_globe(self):
        u, v = np.mgrid[0:2 * np.pi:40j, 0:np.pi:20j]
        r = self.globe_radius
        self.ax.plot_wireframe(r * np.cos(u) * np.sin(v), r * np.sin(u) * np.sin(v),
                               r * np.cos(v), color='steelblue', alpha=0.15, linewidth=0.5)
        limit = r * 1.2
        self.ax.set_xlim(-limit, limit)
        self.ax.set_ylim(-limit, limit)
        self.ax.set_zlim(-limit, limit)
        self.ax.set_box_aspect((1, 1, 1))
        self.ax.set_axis_off()

    def draw_waypoints(self, waypoints: Sequence[Waypoint]):
        """Plot each distinct waypoint once, with its name"""
        seen = set()
        for wp in waypoints:
            if wp.id in seen:
                continue
            seen.add(wp.id)
            x, y, z = to_plot_axes(wp.position.as_array())[0]
            self.ax.scatter(x, y, z, c='gold', s=100, marker='*', edgecolors='black', zorder=5)
            if wp.name:
                self.ax.text(x, y, z, f"  {wp.name}", fontsize=9, fontweight='bold')

    def _draw_route(self, leg: FlightLeg):
        if self._route_artist is not None:
            self._route_artist.remove()
        route = to_plot_axes(leg.path.sample(100))
        (self._route_artist,) = self.ax.plot(route[:, 0], route[:, 1], route[:, 2], '--',
                                             color=self.color, alpha=0.3, linewidth=1)
        self._route_leg = leg

    def render(self, update: FlightUpdate, trail: TrailBuffer):
        """Draw one tick: object marker, heading arrow, trail and current route"""
        if update.leg is not self._route_leg:
            self._draw_route(update.leg)

        self.trail_line.update(trail)

        for artist in self._object_artists:
            artist.remove()
        x, y, z = to_plot_axes(update.position.as_array())[0]
        dx, dy, dz = to_plot_axes(update.orientation.apply(MODEL_FORWARD))[0] * self.arrow_length
        self._object_artists = [
            self.ax.scatter(x, y, z, c=self.color, s=60, marker='o', edgecolors='black', zorder=6),
            self.ax.quiver([x], [y], [z], [dx], [dy], [dz], color='black', linewidth=1.5),
        ]

    def attach(self, controller: FlightController):
        """Render every update the controller publishes"""
        controller.subscribe(lambda update: self.render(update, controller.trail))
        self.draw_waypoints(controller.sequencer.schedule)

    def animate(self, controller: FlightController, frames: int,
                interval: int = 16) -> FuncAnimation:
        """Drive controller.tick from matplotlib's animation timer"""
        # FuncAnimation stops if nothing holds a reference to it
        self.animation = FuncAnimation(self.fig, lambda _: controller.tick(), frames=frames,
                                       interval=interval, repeat=False)
        return self.animation

    def show(self):
        """Show the final plot"""
        plt.show()

    def save(self, filename: str):
        """Save the current figure to a file"""
        self.fig.savefig(filename, dpi=150)

    def close(self):
        plt.close(self.fig)
