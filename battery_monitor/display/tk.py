"""Sign window on the desktop using Tk."""

import logging

from PIL import Image

from .base import DisplayBase, DisplayError

logger = logging.getLogger(__name__)


class TkDisplay(DisplayBase):
    """Undecorated, always-on-top window showing the sign image.

    Each instance creates its own Tk interpreter, which must only be used
    from the thread that opened it.
    """

    def __init__(self, x: int = 0, y: int = 0):
        super().__init__(x, y)
        self._tkinter = None
        self._root = None
        self._canvas = None
        self._photo = None

    def open(self, image: Image.Image) -> None:
        """Create the window at the configured position and map it."""
        try:
            import tkinter

            from PIL import ImageTk
        except ImportError as e:
            raise DisplayError(f"Tk support is not available: {e}") from e

        self._tkinter = tkinter
        width, height = image.size
        try:
            self._root = tkinter.Tk()
            self._root.withdraw()
            self._root.overrideredirect(True)
            self._root.attributes("-topmost", True)
            self._root.geometry(f"{width}x{height}+{self.x}+{self.y}")

            self._photo = ImageTk.PhotoImage(image, master=self._root)
            self._canvas = tkinter.Canvas(
                self._root, width=width, height=height, highlightthickness=0, borderwidth=0
            )
            self._canvas.pack()
            self._canvas.bind("<Expose>", self._on_expose)
            self._canvas.bind("<Map>", self._on_map)

            self._root.deiconify()
            self._draw()
            self._root.update()
        except tkinter.TclError as e:
            self._destroy()
            raise DisplayError(f"Unable to open sign window: {e}") from e

        self.is_open = True
        logger.debug(f"Sign window mapped at ({self.x}, {self.y}), {width}x{height}")

    def _draw(self) -> None:
        self._canvas.delete("all")
        self._canvas.create_image(0, 0, anchor="nw", image=self._photo)

    def _on_expose(self, event) -> None:
        # Only redraw once the last expose event of a series arrives
        if getattr(event, "count", 0) == 0:
            self._draw()

    def _on_map(self, event) -> None:
        self._draw()

    def process_events(self) -> None:
        if not self.is_open:
            raise RuntimeError("Display not open. Call open() first.")
        try:
            self._root.update()
        except self._tkinter.TclError as e:
            raise DisplayError(f"Sign window lost: {e}") from e

    def _destroy(self) -> None:
        if self._root is not None:
            try:
                self._root.destroy()
            except self._tkinter.TclError as e:
                logger.warning(f"Error destroying sign window: {e}")
        self._root = None
        self._canvas = None
        self._photo = None

    def close(self) -> None:
        """Unmap the window and close the Tk interpreter."""
        self._destroy()
        self.is_open = False
