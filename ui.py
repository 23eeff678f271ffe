from asciimatics.widgets import Frame, Layout, Divider, Button, DropdownList, Label

from shapes import Shape
from tool_config import Tool

PERCENT_STEPS = [(f"{i}%", i) for i in range(0, 101, 10)]
THICKNESS_STEPS = [(str(i), i) for i in range(0, 21)]
ALPHA_STEPS = [("255", 255), ("192", 192), ("128", 128), ("64", 64)]


# NOTE: renamed to avoid clashing with Frame.palette attribute.
class ColorPalette:
    """
    A color palette widget. Picks the RGB part of the active colour; the
    alpha channel comes from its own dropdown.
    """
    def __init__(self, frame, canvas):
        self.frame = frame
        self.canvas = canvas
        self.colors = [
            (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0),
            (0, 255, 255), (255, 0, 255), (255, 255, 255), (0, 0, 0)
        ]

        layout = Layout([1] * 8)
        self.frame.add_layout(layout)
        for i, color in enumerate(self.colors):
            # The Button API (as of asciimatics 1.15) takes the text and an on_click
            # callback.  We use a lambda to bind the current colour value.
            button = Button(
                " ",
                on_click=lambda c=color: self._select_color(c)
            )
            layout.add_widget(button, i)

        alpha_layout = Layout([1])
        self.frame.add_layout(alpha_layout)
        self.alpha = DropdownList(ALPHA_STEPS, label="Alpha:", on_change=self._select_alpha)
        alpha_layout.add_widget(self.alpha)

    def _select_color(self, color):
        self.canvas.set_color(*color, self.canvas.color[3])

    def _select_alpha(self):
        r, g, b, _ = self.canvas.color
        self.canvas.set_color(r, g, b, self.alpha.value)


class OptionSelector:
    """
    A dropdown list forwarding the chosen value to a setter of the engine.
    """

    def __init__(self, frame, label, options, setter):
        self.frame = frame
        self.setter = setter
        self._syncing = False

        layout = Layout([1])
        self.frame.add_layout(layout)

        def _on_change():
            if self.setter and not self._syncing:
                self.setter(self.dropdown.value)

        self.dropdown = DropdownList(options, label=label, on_change=_on_change)
        layout.add_widget(self.dropdown)

    def show(self, value):
        """Display `value` without forwarding it back to the setter."""
        if self.dropdown.value != value:
            self._syncing = True
            try:
                self.dropdown.value = value
            finally:
                self._syncing = False


class UIFrame(Frame):
    """
    The side panel: palette, tool and shape choice, tool properties.
    """
    def __init__(self, screen, canvas):
        super(UIFrame, self).__init__(
            screen,
            screen.height,
            screen.width // 4,
            x=screen.width - screen.width // 4,
            y=0,
            has_border=True,
            name="UI"
        )
        # Track whether the UI currently has focus (e.g., the mouse is over the UI region)
        self.has_focus: bool = False
        self.canvas = canvas
        config = canvas.config

        self.color_palette = ColorPalette(self, canvas)
        layout = Layout([1])
        self.add_layout(layout)
        layout.add_widget(Divider())

        self.tool_selector = OptionSelector(
            self, "Tool:", [(t.value.capitalize(), t.value) for t in Tool], config.set_tool)
        self.shape_selector = OptionSelector(
            self, "Shape:", [(s.value.capitalize(), s.value) for s in Shape], config.set_shape)
        self.thickness_selector = OptionSelector(
            self, "Thickness:", THICKNESS_STEPS, config.set_thickness)
        self.opacity_selector = OptionSelector(
            self, "Opacity:", PERCENT_STEPS, config.set_opacity)
        self.density_selector = OptionSelector(
            self, "Density:", PERCENT_STEPS, config.set_density)
        self.threshold_selector = OptionSelector(
            self, "Threshold:", PERCENT_STEPS, config.set_threshold)

        status = Layout([1])
        self.add_layout(status)
        status.add_widget(Divider())
        self.color_label = Label("")
        status.add_widget(self.color_label)
        self.history_label = Label("")
        status.add_widget(self.history_label)

        self.sync()
        self.fix()

    def sync(self):
        """Bring the widgets in line with the engine state."""
        config = self.canvas.config
        self.tool_selector.show(config.tool.value)
        self.shape_selector.show(config.shape.value)
        self.thickness_selector.show(int(config.thickness))
        self.opacity_selector.show(_nearest_step(config.opacity))
        self.density_selector.show(_nearest_step(config.density))
        self.threshold_selector.show(_nearest_step(config.threshold))
        self.color_label.text = "Color: ({}, {}, {}, {})".format(*self.canvas.color)
        self.history_label.text = "Undo: {undo_count}  Redo: {redo_count}".format(
            **self.canvas.history.stats())


def _nearest_step(fraction):
    return int(round(fraction * 10)) * 10
