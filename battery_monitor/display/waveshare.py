"""Sign on a Waveshare e-ink display."""

import logging

from PIL import Image

from .base import DisplayBase, DisplayError

logger = logging.getLogger(__name__)


class WaveshareDisplay(DisplayBase):
    """Shows the sign on a Waveshare e-Paper panel.

    E-ink keeps its content without power, so there are no redraw events;
    the panel is cleared when the sign is closed.
    """

    def __init__(
        self, model: str = "7in3e", width: int = 800, height: int = 480, x: int = 0, y: int = 0
    ):
        """Initialize the Waveshare display.

        Args:
            model: Waveshare model (e.g., "7in3e" for 7.3inch e-Paper)
            width: Panel width in pixels
            height: Panel height in pixels
            x: Horizontal position of the sign on the panel
            y: Vertical position of the sign on the panel
        """
        super().__init__(x, y)
        self.model = model
        self.width = width
        self.height = height
        self.epd = None

    def _get_epd_module(self):
        """Get the appropriate EPD driver for the display model."""
        try:
            if self.model == "7in3e":
                from waveshare_epd import epd7in3e

                return epd7in3e.EPD()
            elif self.model == "7in5":
                from waveshare_epd import epd7in5

                return epd7in5.EPD()
            elif self.model == "7in5_V2":
                from waveshare_epd import epd7in5_V2

                return epd7in5_V2.EPD()
            else:
                raise DisplayError(f"Unsupported Waveshare model: {self.model}")
        except ImportError as e:
            raise DisplayError(f"Failed to import Waveshare EPD module: {e}") from e

    def open(self, image: Image.Image) -> None:
        """Initialize the panel and draw the sign onto a blank frame."""
        try:
            logger.info(f"Initializing Waveshare {self.model} display")
            self.epd = self._get_epd_module()
            self.epd.init()

            frame = Image.new("RGB", (self.width, self.height), (255, 255, 255))
            frame.paste(image, (self.x, self.y))
            self.epd.display(self.epd.getbuffer(frame))
        except DisplayError:
            raise
        except Exception as e:
            raise DisplayError(f"Failed to show sign on e-ink display: {e}") from e

        self.is_open = True
        logger.info("Sign displayed on e-ink display")

    def process_events(self) -> None:
        if not self.is_open:
            raise RuntimeError("Display not open. Call open() first.")

    def close(self) -> None:
        """Clear the panel and put it into low power mode."""
        if not self.is_open:
            return

        try:
            logger.info("Clearing e-ink display")
            self.epd.Clear()
            self.epd.sleep()
        except Exception as e:
            raise DisplayError(f"Failed to clear e-ink display: {e}") from e
        finally:
            self.is_open = False
