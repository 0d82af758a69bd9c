import math
import random


def generate_human_like_path(start, end, settings, rng=None):
    rng = rng or random
    if not settings.enabled:
        return [start, end]

    path = [start]
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    num_points = max(settings.curve_smoothness, 2)

    for i in range(1, num_points):
        t = i / num_points
        x = start[0] + dx * t
        y = start[1] + dy * t

        # Deviation peaks halfway and vanishes at both ends
        deviation = abs(math.sin(t * math.pi)) * settings.max_deviation
        dev_x = rng.uniform(-deviation, deviation)
        dev_y = rng.uniform(-deviation, deviation)
        path.append((round(x + dev_x), round(y + dev_y)))

    path.append(end)
    return path


def segment_delay_ms(distance, settings, rng=None):
    rng = rng or random
    speed = settings.base_speed + rng.uniform(-settings.speed_variation, settings.speed_variation)
    return max(distance * speed, 1.0)


def jitter_ms(low, high, rng=None):
    rng = rng or random
    if high <= low:
        return low
    return rng.randint(low, high - 1)


def random_offset(settings, rng=None):
    rng = rng or random
    if not settings.enabled:
        return 0, 0
    return (
        rng.randint(-settings.max_x_offset, settings.max_x_offset),
        rng.randint(-settings.max_y_offset, settings.max_y_offset),
    )
