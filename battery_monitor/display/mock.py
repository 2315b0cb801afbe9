"""Mock display implementation for testing without a window system."""

import logging

from PIL import Image

from .base import DisplayBase

logger = logging.getLogger(__name__)


class MockDisplay(DisplayBase):
    """Mock display that logs operations instead of opening a window."""

    def __init__(self, x: int = 0, y: int = 0):
        """Initialize the mock display.

        Args:
            x: Horizontal screen position (for logging purposes)
            y: Vertical screen position (for logging purposes)
        """
        super().__init__(x, y)
        self.size: tuple[int, int] | None = None
        self.event_rounds = 0

    def open(self, image: Image.Image) -> None:
        """Log the sign that would be shown."""
        self.size = image.size
        self.is_open = True
        logger.info(f"[DRY RUN] Showing sign {image.size[0]}x{image.size[1]} at ({self.x}, {self.y})")

    def process_events(self) -> None:
        """Count event rounds, there are never any events."""
        if not self.is_open:
            raise RuntimeError("Display not open. Call open() first.")
        self.event_rounds += 1

    def close(self) -> None:
        """Log the sign removal."""
        if self.is_open:
            logger.info("[DRY RUN] Removing sign")
        self.is_open = False
