"""Base class for sign display implementations."""

from abc import ABC, abstractmethod

from PIL import Image


class DisplayError(Exception):
    """The display, window or font could not be used."""


class DisplayBase(ABC):
    """Abstract base class for sign displays.

    An instance is a single window on a single display connection. It is
    created, used and closed by one sign worker thread and never shared.
    """

    def __init__(self, x: int = 0, y: int = 0):
        """Initialize the display base.

        Args:
            x: Horizontal screen position of the sign in pixels
            y: Vertical screen position of the sign in pixels
        """
        self.x = x
        self.y = y
        self.is_open = False

    @abstractmethod
    def open(self, image: Image.Image) -> None:
        """Connect to the display and show the rendered sign.

        Args:
            image: Rendered sign, the window is sized to fit it

        Raises:
            DisplayError: If the display or window cannot be set up
        """
        pass

    @abstractmethod
    def process_events(self) -> None:
        """Handle pending window events without blocking.

        Redraws the sign when the window system reports it was exposed
        or mapped.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Remove the sign and release the display connection."""
        pass
