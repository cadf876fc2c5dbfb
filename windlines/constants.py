"""
Rendering Constants

Defaults for the raster surface, color gradient and streamline tracer.
"""

# Output raster (pixels)
CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
DPI = 100

# Surface appearance
BACKGROUND_COLOR = "#141524"
BASE_ALPHA = 0.5
LINE_WIDTH_PX = 1.0

# Caption, anchored at (width - x, height - y) from the top-left corner
CAPTION_COLOR = "#ffffff"
CAPTION_FONT_SIZE_PX = 18
CAPTION_OFFSET = (104, 8)

# Stroke alpha = MIN_STROKE_ALPHA + (1 - MIN_STROKE_ALPHA) * normalized speed
MIN_STROKE_ALPHA = 0.1

# Speed gradient: (position, r, g, b)
GRADIENT_STOPS = [
    (0.0, 0x28, 0x28, 0x28),
    (0.5, 0x6A, 0xA8, 0xC6),
    (1.0, 0xE2, 0xE5, 0xAA),
]

# Streamline tracer tuning (field-space units)
D_SEP = 0.25
D_TEST = 0.125
TIME_STEP = 1.9
STEPS_PER_ITERATION = 40000
MAX_TIME_PER_ITERATION = 1000000  # milliseconds
SEED = (10.0, 10.0)
