import sys
from collections import Counter

from active_range import parse_level

CELL_WIDTH = 5
RESET = "\x1b[0m"
CLEAR_SCREEN = "\x1b[2J\x1b[3J\x1b[H"


def get_contrast_text_color(red, green, blue):
    luminance = 0.2126 * (red / 255) + 0.7152 * (green / 255) + 0.0722 * (blue / 255)
    if luminance > 0.5:
        return "\x1b[38;2;0;0;0m"
    return "\x1b[38;2;255;255;255m"


def calculate_required_merges(barrels):
    """Return (min_level, max_level, merges) where merges is the number of merges
    still needed to get one barrel above the current maximum level."""
    counts = Counter(parse_level(barrel.object_name) for barrel in barrels)
    if not counts:
        return 0, 0, 0

    min_level = min(counts)
    max_level = max(counts)

    merges = 1
    needed = 2
    for level in range(max_level, min_level - 1, -1):
        shortfall = max(needed - counts.get(level, 0), 0)
        if shortfall == 0:
            break
        merges += shortfall
        needed = shortfall * 2

    return min_level, max_level, merges


def _grid_position(value, minimum, cell_size):
    if cell_size <= 0:
        return 0
    return int(round((value - minimum) / cell_size))


def _border(left, middle, right, cols):
    return left + middle.join("═" * CELL_WIDTH for _ in range(cols)) + right


def _cell(entry):
    if entry is None or entry[0] == 0:
        return " " * CELL_WIDTH
    level, (red, green, blue) = entry
    text_color = get_contrast_text_color(red, green, blue)
    return f" {text_color}\x1b[48;2;{red:.0f};{green:.0f};{blue:.0f}m{level:^3}{RESET} "


def build_results_table(detections, cols, rows, templates, detection_time, fps=None):
    if not detections:
        return "No objects detected"

    colors = {template.name: template.color for template in templates}

    xs = [detection.location[0] for detection in detections]
    ys = [detection.location[1] for detection in detections]
    min_x, min_y = min(xs), min(ys)
    cell_width = (max(xs) - min_x) / (cols - 1) if cols > 1 else 0
    cell_height = (max(ys) - min_y) / (rows - 1) if rows > 1 else 0

    table = [[None] * cols for _ in range(rows)]
    for detection in detections:
        if detection.object_name not in colors:
            continue
        col = _grid_position(detection.location[0], min_x, cell_width)
        row = _grid_position(detection.location[1], min_y, cell_height)
        if row < rows and col < cols:
            table[row][col] = (parse_level(detection.object_name), colors[detection.object_name])

    lines = [_border("╔", "╦", "╗", cols)]
    for row in range(rows):
        line = "║" + "║".join(_cell(entry) for entry in table[row]) + "║"
        if row == rows - 1 and fps is not None:
            line += f" {fps:.0f}fps"
        lines.append(line)
        if row < rows - 1:
            lines.append(_border("╠", "╬", "╣", cols))
    lines.append(_border("╚", "╩", "╝", cols) + f" {detection_time}ms")

    barrels = [detection for detection in detections if detection.object_name.startswith("Barrel")]
    min_level, max_level, merges = calculate_required_merges(barrels)
    stats = f" {f'⭣{min_level}':^5} {f'⭡{max_level}':^5} {f'⭢{max_level + 1}':^5} {f'⭤{merges}':>10} "
    lines.append("╔" + "═" * (len(stats)) + "╗")
    lines.append("║" + stats + "║")
    lines.append("╚" + "═" * (len(stats)) + "╝")

    return "\n".join(lines)


def display_results_as_table(detections, cols, rows, templates, detection_time, fps=None):
    sys.stdout.write(CLEAR_SCREEN)
    sys.stdout.write(build_results_table(detections, cols, rows, templates, detection_time, fps) + "\n")
    sys.stdout.flush()
