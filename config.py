# Window Configuration
# WINDOW_TITLE: The title of the scrcpy window mirroring the phone (visible at the top of the window)
# To find it: Look at your scrcpy window's title bar, it usually shows your device model
WINDOW_TITLE = "Scrap II"
REFERENCE_WIDTH = 386
REFERENCE_HEIGHT = 800
WINDOW_SIZE_TOLERANCE = 5

# Settings file with the per-template configuration
# Created with the defaults below on first start
SETTINGS_FILE = "settings.json"

# Detection Settings
# RESOLUTION: base scale factor applied to every screenshot before matching
# Lower is faster, too low makes small barrels unrecognisable
RESOLUTION = 0.38
RESCAN_DELAY = 250
CONVERT_TO_GRAYSCALE = True

# Template background colour (BGR) that gets keyed to black when a template is loaded
TEMPLATE_BACKGROUND_LOWER = (150, 190, 150)
TEMPLATE_BACKGROUND_UPPER = (158, 200, 158)

# Active template range
# After the first hit the search is narrowed around the detected levels,
# later frames only widen it by the smaller buffer
FULL_RANGE_LEVELS_BELOW = 5
FULL_RANGE_LEVELS_ABOVE = 8
NARROWED_LEVELS_BELOW = 3
NARROWED_LEVELS_ABOVE = 3

# Worker threads used for template matching and template loading
# None means min(32, cpu_count + 4)
MAX_WORKERS = None

# Directory Paths
LOGS_DIR = "logs"
RESULT_IMAGE = "result.png"

# Debug and Visualization Settings
DEBUG = True
SAVE_RESULT_IMAGE = True
SHOW_TABLE = True
TABLE_COLS = 4
TABLE_ROWS = 5

# Random click offset defaults (pixels)
RANDOM_OFFSET_ENABLED = True
MAX_X_OFFSET = 5
MAX_Y_OFFSET = 5

# Human-like movement defaults
HUMAN_LIKE_MOVEMENT_ENABLED = True
MAX_DEVIATION = 10.0
SPEED_VARIATION = 0.3
CURVE_SMOOTHNESS = 5
MIN_PAUSE_MS = 10
MAX_PAUSE_MS = 50
BASE_SPEED = 0.1
MIN_DOWN_MS = 2
MAX_DOWN_MS = 5
MIN_UP_MS = 2
MAX_UP_MS = 6
MIN_MOVE_DELAY_MS = 5
MAX_MOVE_DELAY_MS = 12

# Mouse Settings
CLICK_DELAY = 0.05
MOUSE_DOWN_UP_DELAY = 0.01
