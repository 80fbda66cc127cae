"""
Viewer for a rendered field.

Contains the FieldViewer class which handles:
- Rendering the field once through render_config()
- Window setup and the display loop
- Quitting on window close, Q or ESC
"""

import logging

import pygame

from .compute import warmup_jit
from .config import RenderConfig
from .renderer import FieldRenderer

logger = logging.getLogger(__name__)


class FieldViewer:
    """
    Shows one rendered field in a pygame window.

    The window is sized to the buffer; the buffer is converted to a
    surface once and blitted every frame until the user quits.
    """

    FPS = 60

    def __init__(self, config=None):
        """
        Initialize the viewer.

        Args:
            config: RenderConfig to render (default: the reference render)
        """
        self.config = (config or RenderConfig()).validate()
        self.buffer = None
        self.stats = None

        # Pygame state (initialized in show())
        self.screen = None
        self.clock = None
        self.surface = None
        self.running = False

    def render(self):
        """Compile the kernels, render the field and keep the buffer."""
        warmup_jit()
        renderer = FieldRenderer(self.config)
        self.buffer = renderer.render()
        self.stats = renderer.stats
        return self.buffer

    def show(self):
        """Open the window and display the buffer until the user quits."""
        if self.buffer is None:
            self.render()

        self._init_pygame()
        self.surface = pygame.surfarray.make_surface(self.buffer.to_surface_array())

        self.running = True
        while self.running:
            self._handle_events()
            self.screen.blit(self.surface, (0, 0))
            pygame.display.flip()
            self.clock.tick(self.FPS)

        pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        logger.debug("Opening %dx%d window", self.config.width, self.config.height)
        pygame.init()
        self.screen = pygame.display.set_mode(
            (self.config.width, self.config.height),
            pygame.DOUBLEBUF
        )
        pygame.display.set_caption("Mandelbrot Set - Q or ESC to quit")
        self.clock = pygame.time.Clock()

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN and event.key in (pygame.K_q, pygame.K_ESCAPE):
                self.running = False


def run(config=None, show=True):
    """
    Render a field and optionally display it.

    Args:
        config: RenderConfig (default: the reference render)
        show: Open a window after rendering

    Returns:
        The FieldViewer, with buffer and stats populated
    """
    viewer = FieldViewer(config)
    viewer.render()
    print(f"Rendered {viewer.config.width}x{viewer.config.height} "
          f"with {viewer.config.workers} workers in {viewer.stats.elapsed:.3f}s")
    if show:
        try:
            viewer.show()
        except KeyboardInterrupt:
            pygame.quit()
    return viewer
