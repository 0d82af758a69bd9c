import logging

import config

logger = logging.getLogger(__name__)


def parse_level(name):
    """Return the numeric level at the end of a template name ("Barrel 12" -> 12), 0 if there is none."""
    parts = name.split()
    if not parts:
        return 0
    token = parts[-1]
    if token.isascii() and token.isdigit():
        return int(token)
    return 0


class ActiveRange:
    """Contiguous slice of the template list that is matched on the next frame.

    Starts out covering every template. The first frame with detections narrows
    it to the templates whose level lies around the detected ones, later frames
    can only widen it. A frame without detections goes back to the full range.
    """

    def __init__(self, template_count=0):
        self.levels_below = config.FULL_RANGE_LEVELS_BELOW
        self.levels_above = config.FULL_RANGE_LEVELS_ABOVE
        self.narrowed_levels_below = config.NARROWED_LEVELS_BELOW
        self.narrowed_levels_above = config.NARROWED_LEVELS_ABOVE
        self.reset(template_count)

    @property
    def bounds(self):
        return self.start, self.end

    def reset(self, template_count):
        self.template_count = template_count
        self.start = 0
        self.end = max(template_count - 1, 0)
        self.is_full_range = True

    def update(self, detected_levels, template_names):
        levels = list(detected_levels)
        if not levels:
            if not self.is_full_range:
                logger.debug("Nothing detected, searching all templates again")
            self.reset(len(template_names))
            return

        self.template_count = len(template_names)
        last_index = max(self.template_count - 1, 0)
        lowest = min(levels)
        highest = max(levels)

        if self.is_full_range:
            new_min = max(lowest - self.levels_below, 0)
            new_max = highest + self.levels_above

            matching = [
                index for index, name in enumerate(template_names)
                if new_min <= parse_level(name) <= new_max
            ]
            if matching:
                start, end = matching[0], matching[-1]
            else:
                start, end = 0, last_index
            self.is_full_range = False
            logger.debug(f"Narrowed active range to levels {new_min}-{new_max} (templates {start}-{min(end, last_index)})")
        else:
            # Levels are compared against indices directly, which only holds
            # while templates are stored in ascending level order without gaps
            new_min = max(lowest - self.narrowed_levels_below, 0)
            new_max = highest + self.narrowed_levels_above
            start = min(self.start, new_min)
            end = max(self.end, new_max)

        self.start = min(start, last_index)
        self.end = min(end, last_index)

    def select(self, templates):
        if not templates:
            return []

        active = [template for template in templates if template.always_active]
        last_index = len(templates) - 1
        for index in range(min(self.start, last_index), min(self.end, last_index) + 1):
            template = templates[index]
            if not template.always_active:
                active.append(template)
        return active

    def __repr__(self):
        state = "full" if self.is_full_range else "narrowed"
        return f"ActiveRange({self.start}, {self.end}, {state})"
