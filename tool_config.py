import logging
import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Union

from shapes import Shape

logger = logging.getLogger(__name__)

# Scale used by the UI sliders for opacity, density and threshold.
OPACITY_MAX = 100
DENSITY_MAX = 100
THRESH_MAX = 100

DEFAULT_THICKNESS = 5
DEFAULT_OPACITY = 1.0
DEFAULT_DENSITY = 0.5
DEFAULT_THRESHOLD = 0.1


class Tool(Enum):
    BRUSH = "brush"
    AIRBRUSH = "airbrush"
    ERASER = "eraser"
    FILLER = "filler"
    PICKER = "picker"


def _resolve(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return None
    return None


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


@dataclass
class ToolConfig:
    """
    Active tool and its properties.

    Opacity, density and threshold are stored in [0, 1]; their setters take
    values on the 0..100 scale the sliders use. Every setter returns False and
    keeps the previous value when the input is rejected.
    """
    tool: Tool = Tool.BRUSH
    shape: Shape = Shape.CIRCLE
    thickness: float = DEFAULT_THICKNESS
    opacity: float = DEFAULT_OPACITY
    density: float = DEFAULT_DENSITY
    threshold: float = DEFAULT_THRESHOLD

    def set_tool(self, name: Union[str, Tool]) -> bool:
        tool = _resolve(Tool, name)
        if tool is None:
            logger.warning("Invalid tool %r, keeping %s", name, self.tool.value)
            return False
        self.tool = tool
        return True

    def set_shape(self, name: Union[str, Shape]) -> bool:
        shape = _resolve(Shape, name)
        if shape is None:
            logger.warning("Invalid shape %r, keeping %s", name, self.shape.value)
            return False
        self.shape = shape
        return True

    def set_thickness(self, value) -> bool:
        if not _is_number(value) or not math.isfinite(value) or value < 0:
            logger.warning("Invalid thickness %r, keeping %s", value, self.thickness)
            return False
        self.thickness = value
        return True

    def set_opacity(self, value) -> bool:
        return self._set_scaled("opacity", value, OPACITY_MAX)

    def set_density(self, value) -> bool:
        return self._set_scaled("density", value, DENSITY_MAX)

    def set_threshold(self, value) -> bool:
        return self._set_scaled("threshold", value, THRESH_MAX)

    def _set_scaled(self, field_name: str, value, maximum: int) -> bool:
        if not _is_number(value) or not 0 <= value <= maximum:
            logger.warning(
                "Invalid %s %r, expected 0..%d, keeping %s",
                field_name, value, maximum, getattr(self, field_name),
            )
            return False
        setattr(self, field_name, value / maximum)
        return True
