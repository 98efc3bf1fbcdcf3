"""
visualizer.py — Live Density Viewer
====================================
Renders the density field of a FluidSimulation and turns mouse drags into
forces and density sources.

  - Drag with the left button  → push fluid along the drag, inject smoke
  - Key 'r'                    → reset velocity
  - Key 'c'                    → clear density

Uses matplotlib FuncAnimation for real-time updates.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap

# Custom smoke colormap: black → orange → white
SMOKE_COLORS = ["#000000", "#1a0a00", "#ff6a00", "#ffffff"]
smoke_cmap = LinearSegmentedColormap.from_list("smoke", SMOKE_COLORS)

# Drag distance (cells) → force
FORCE_SCALE = 5.0
DENSITY_AMOUNT = 50.0


class FluidVisualizer:
    """
    Real-time viewer of the fluid simulation.

    Usage (standalone):
        from stablefluid import FluidSimulation
        from visualizer import FluidVisualizer

        sim = FluidSimulation(N=64)
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, emitter: bool = True):
        """
        Args:
            simulation : FluidSimulation instance
            emitter    : Keep a smoke source running at bottom-center
        """
        self.sim = simulation
        self.N = simulation.grid.N
        self.emitter = emitter
        self._last_cell = None

        self._setup_figure()

    def _setup_figure(self):
        """Initialize the matplotlib figure and input handlers."""
        self.fig, self.ax = plt.subplots(figsize=(6, 6))
        self.fig.patch.set_facecolor('#0a0a0a')
        self.ax.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        for spine in self.ax.spines.values():
            spine.set_edgecolor('#333333')

        self.img = self.ax.imshow(
            np.zeros((self.N, self.N)), cmap=smoke_cmap,
            vmin=0, vmax=2.0,
            interpolation='bilinear',
            origin='lower',
            aspect='equal'
        )
        self.title_text = self.fig.suptitle(
            "Fluid Sim — Frame 0 | 0.0 FPS",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        self.fig.canvas.mpl_connect('button_press_event', self._on_press)
        self.fig.canvas.mpl_connect('button_release_event', self._on_release)
        self.fig.canvas.mpl_connect('motion_notify_event', self._on_motion)
        self.fig.canvas.mpl_connect('key_press_event', self._on_key)

        plt.tight_layout()

    def _to_cell(self, event):
        """Pixel event → interior grid cell (1..N), or None outside the axes."""
        if event.inaxes is not self.ax or event.xdata is None:
            return None
        i = int(round(event.xdata)) + 1
        j = int(round(event.ydata)) + 1
        return min(max(i, 1), self.N), min(max(j, 1), self.N)

    def _on_press(self, event):
        if event.button == 1:
            self._last_cell = self._to_cell(event)

    def _on_release(self, event):
        self._last_cell = None

    def _on_motion(self, event):
        if self._last_cell is None:
            return
        cell = self._to_cell(event)
        if cell is None:
            return
        i, j = cell
        du = (i - self._last_cell[0]) * FORCE_SCALE
        dv = (j - self._last_cell[1]) * FORCE_SCALE
        self.sim.add_force(i, j, du, dv)
        self.sim.add_density(i, j, DENSITY_AMOUNT)
        self._last_cell = cell

    def _on_key(self, event):
        if event.key == 'r':
            self.sim.reset_velocity()
        elif event.key == 'c':
            self.sim.reset_density()

    def _get_image(self) -> np.ndarray:
        """Interior density, transposed so x is horizontal."""
        N = self.N
        return self.sim.grid.density[1:N+1, 1:N+1].T

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the image."""
        N = self.N
        if self.emitter:
            self.sim.add_density(N // 2, 2, 10.0)
            self.sim.add_force(N // 2, 2, 0.0, 2.0)

        metrics = self.sim.step()

        self.img.set_data(self._get_image())
        self.title_text.set_text(
            f"Fluid Sim — Frame {metrics['frame']} | "
            f"{metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )

        return [self.img, self.title_text]

    def run(self, fps: int = 30, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = infinite)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False
        )
        plt.show()

    def save_gif(self, path: str = "fluid_sim.gif", fps: int = 10, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=100, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
