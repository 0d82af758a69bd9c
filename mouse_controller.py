import logging
import math
import time

import win32api
import win32con

import config
import movement

logger = logging.getLogger(__name__)


class MouseController:
    def __init__(self, movement_settings, offset_settings, click_delay=config.CLICK_DELAY):
        self.movement_settings = movement_settings
        self.offset_settings = offset_settings
        self.click_delay = click_delay

    def get_cursor_position(self):
        x, y = win32api.GetCursorPos()
        return x, y

    def is_cursor_in_window(self, window_x, window_y, window_width, window_height):
        x, y = self.get_cursor_position()
        return (window_x <= x <= window_x + window_width
                and window_y <= y <= window_y + window_height)

    def detection_target(self, detection, template_size, window_origin):
        offset_x, offset_y = movement.random_offset(self.offset_settings)
        w, h = template_size
        return (
            window_origin[0] + detection.location[0] + w // 2 + offset_x,
            window_origin[1] + detection.location[1] + h // 2 + offset_y,
        )

    def move_to(self, x, y):
        target = (int(x), int(y))
        settings = self.movement_settings

        if not settings.enabled:
            win32api.SetCursorPos(target)
            return

        path = movement.generate_human_like_path(self.get_cursor_position(), target, settings)
        for i in range(len(path) - 1):
            from_x, from_y = path[i]
            to_x, to_y = path[i + 1]
            distance = math.hypot(to_x - from_x, to_y - from_y)

            win32api.SetCursorPos((to_x, to_y))

            if i < len(path) - 2:
                time.sleep(movement.jitter_ms(settings.min_pause_ms, settings.max_pause_ms) / 1000)
            time.sleep(movement.segment_delay_ms(distance, settings) / 1000)

    def mouse_down(self, x, y):
        win32api.mouse_event(win32con.MOUSEEVENTF_LEFTDOWN, int(x), int(y), 0, 0)
        logger.debug(f"Mouse down at ({x}, {y})")

    def mouse_up(self, x, y):
        win32api.mouse_event(win32con.MOUSEEVENTF_LEFTUP, int(x), int(y), 0, 0)
        logger.debug(f"Mouse up at ({x}, {y})")

    def click(self, x, y, wait_after=True):
        self.move_to(x, y)
        self.mouse_down(x, y)
        time.sleep(config.MOUSE_DOWN_UP_DELAY)
        self.mouse_up(x, y)
        logger.info(f"Clicked at ({x}, {y})")
        if wait_after:
            time.sleep(self.click_delay)

    def drag(self, from_x, from_y, to_x, to_y):
        settings = self.movement_settings

        self.move_to(from_x, from_y)
        time.sleep(movement.jitter_ms(settings.min_down_ms, settings.max_down_ms) / 1000)
        self.mouse_down(from_x, from_y)
        time.sleep(movement.jitter_ms(settings.min_move_delay_ms, settings.max_move_delay_ms) / 1000)

        self.move_to(to_x, to_y)
        time.sleep(movement.jitter_ms(settings.min_up_ms, settings.max_up_ms) / 1000)
        self.mouse_up(to_x, to_y)
        logger.info(f"Dragged from ({from_x}, {from_y}) to ({to_x}, {to_y})")
