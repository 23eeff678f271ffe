import logging
import sys
from typing import Optional, Tuple
import time
from asciimatics.screen import Screen
from asciimatics.event import KeyboardEvent, MouseEvent
from asciimatics.exceptions import ResizeScreenError
from asciimatics.scene import Scene
from asciimatics.effects import Effect
from PIL import Image
from canvas import Canvas
from tool_config import Tool
from ui import UIFrame

logger = logging.getLogger(__name__)

LOG_FILE = "terminal_painter.log"
STROKE_TOOLS = (Tool.BRUSH, Tool.AIRBRUSH, Tool.ERASER)


# Simple 8-colour mapping from RGBA to nearest basic terminal colour index.
def _rgb_to_colour_index(r: int, g: int, b: int) -> int:
    # Threshold values chosen for basic distinction.
    if r > 200 and g > 200 and b > 200:
        return Screen.COLOUR_WHITE
    if r > 200 and g < 100 and b < 100:
        return Screen.COLOUR_RED
    if g > 200 and r < 100 and b < 100:
        return Screen.COLOUR_GREEN
    if b > 200 and r < 100 and g < 100:
        return Screen.COLOUR_BLUE
    if r > 200 and g > 200 and b < 100:
        return Screen.COLOUR_YELLOW
    if r > 200 and b > 200 and g < 100:
        return Screen.COLOUR_MAGENTA
    if g > 200 and b > 200 and r < 100:
        return Screen.COLOUR_CYAN
    return Screen.COLOUR_BLACK


def _pixel_colour(pixel) -> int:
    # Translucent pixels are shown over a black background.
    r, g, b, a = (int(c) for c in pixel)
    return _rgb_to_colour_index(r * a // 255, g * a // 255, b * a // 255)


def half_block_render(screen, canvas):
    """Renders the canvas to the screen using half-blocks."""
    pixels = canvas.pixels
    # Iterate over character-cell rows. Each cell corresponds to two pixel rows in
    # the canvas: upper (y) and lower (y+1).
    for y in range(0, min(canvas.height - 1, screen.height * 2), 2):
        row = y // 2  # Character-cell row on the Screen.
        for x in range(min(canvas.width, screen.width)):
            fg = _pixel_colour(pixels[y, x])
            bg = _pixel_colour(pixels[y + 1, x])

            # If both halves share the same colour, draw a full-block for crisper output.
            if fg == bg:
                screen.print_at('█', x, row, colour=fg, bg=bg)
            else:
                screen.print_at('▀', x, row, colour=fg, bg=bg)


class CanvasEffect(Effect):
    """Asciimatics Effect that renders our pixel buffer using half-block chars."""

    def __init__(self, screen: Screen, canvas: "Canvas"):
        super().__init__(screen)
        self._canvas = canvas
        self._stale = False
        canvas.add_resize_listener(self._on_canvas_resize)

    def _on_canvas_resize(self, width: int, height: int):
        logger.info("Canvas is now %dx%d", width, height)
        self._stale = True

    def reset(self):
        # Nothing to reset between scene restarts.
        pass

    def stop_frame(self):
        # Run indefinitely; Scene duration is -1.
        return 0

    def _update(self, frame_no):
        if self._stale:
            self._screen.clear_buffer(Screen.COLOUR_BLACK, Screen.A_NORMAL, Screen.COLOUR_BLACK)
            self._stale = False
        half_block_render(self._screen, self._canvas)


def press(canvas: Canvas, x: int, y: int) -> None:
    """Begin a discrete tool action at (x, y)."""
    tool = canvas.config.tool
    if tool in STROKE_TOOLS:
        canvas.snapshot()
        canvas.start_stroke()
        canvas.tool_action(x, y)
    elif tool is Tool.FILLER:
        canvas.snapshot()
        canvas.filler(x, y)
    else:
        canvas.picker(x, y)


def main(screen, image=None):
    canvas_width = screen.width - screen.width // 4
    canvas_height = screen.height * 2  # Two pixel rows per character row
    canvas = Canvas(canvas_width, canvas_height, image=image)
    ui = UIFrame(screen, canvas)

    class AppState:
        def __init__(self):
            self.last_mouse_pos: Optional[Tuple[int, int]] = None
            self.drawing = False

    app_state = AppState()

    # Build a Scene containing both the canvas effect and the UI frame.
    canvas_effect = CanvasEffect(screen, canvas)
    screen.set_scenes([Scene([canvas_effect, ui], duration=-1)])

    while True:
        # Event handling ----------------------------------------------------
        event = screen.get_event()

        # Let the UI consume the event first (e.g., dropdown changes).
        event = ui.process_event(event)

        if isinstance(event, KeyboardEvent):
            if event.key_code in (ord('q'), ord('Q')):
                return
            elif event.key_code == Screen.ctrl("z"):
                canvas.undo()
            elif event.key_code == Screen.ctrl("y"):
                canvas.redo()
            elif event.key_code == ord('>'):
                canvas.config.set_shape(canvas.config.shape.next())
            elif event.key_code == ord('<'):
                canvas.config.set_shape(canvas.config.shape.previous())
            ui.sync()
        elif isinstance(event, MouseEvent):
            # Determine if the mouse event occurred inside the UI frame. The UI occupies
            # the right-most quarter of the screen, starting at `canvas_width`.
            ui.has_focus = event.x >= canvas_width

            # Convert character coordinates to pixel coordinates for the canvas.
            pixel_x = event.x
            pixel_y = event.y * 2

            if event.buttons == MouseEvent.LEFT_CLICK:
                # Only draw on the canvas if the UI does not have focus.
                if not ui.has_focus:
                    if not app_state.drawing:
                        app_state.drawing = True
                        app_state.last_mouse_pos = (pixel_x, pixel_y)
                        press(canvas, pixel_x, pixel_y)
                        ui.sync()
                    elif canvas.config.tool in STROKE_TOOLS:
                        if app_state.last_mouse_pos is not None:
                            canvas.tool_line(
                                app_state.last_mouse_pos[0], app_state.last_mouse_pos[1],
                                pixel_x, pixel_y,
                            )
                        app_state.last_mouse_pos = (pixel_x, pixel_y)
            else:
                app_state.drawing = False

        # ------------------------------------------------------------------
        # Draw the next frame for the Scene (canvas effect + UI).
        screen.draw_next_frame()

        # Cap the frame-rate to ~30 FPS to reduce flicker and CPU usage.
        time.sleep(1 / 30)


if __name__ == "__main__":
    logging.basicConfig(
        filename=LOG_FILE,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    source = Image.open(sys.argv[1]) if len(sys.argv) > 1 else None
    while True:
        try:
            Screen.wrapper(main, arguments=[source])
            sys.exit(0)
        except ResizeScreenError:
            pass
