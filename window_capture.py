import ctypes
import logging

import numpy as np
import win32gui
import win32ui

import config
from exceptions import WindowNotFoundError

logger = logging.getLogger(__name__)

ctypes.windll.shcore.SetProcessDpiAwareness(2)


class WindowCapture:
    def __init__(self, window_title, reference_width, reference_height):
        self.window_title = window_title
        self.hwnd = None
        self.reference_width = reference_width
        self.reference_height = reference_height
        self.find_window()

    def find_window(self):
        self.hwnd = win32gui.FindWindow(None, self.window_title)
        if not self.hwnd:
            raise WindowNotFoundError(f"Window '{self.window_title}' not found!")
        logger.info(f"Window found: {self.window_title} (HWND: {self.hwnd})")

    def get_window_rect(self):
        if not self.hwnd:
            self.find_window()

        rect = win32gui.GetClientRect(self.hwnd)
        x, y = win32gui.ClientToScreen(self.hwnd, (rect[0], rect[1]))
        width = rect[2] - rect[0]
        height = rect[3] - rect[1]
        return x, y, width, height

    def get_window_size(self):
        _, _, width, height = self.get_window_rect()
        return width, height

    def check_window_size(self, tolerance=config.WINDOW_SIZE_TOLERANCE):
        width, height = self.get_window_size()
        width_diff = abs(width - self.reference_width)
        height_diff = abs(height - self.reference_height)

        if width_diff <= tolerance and height_diff <= tolerance:
            return True

        logger.warning(
            f"Current window size: {width}x{height}, "
            f"recommended: {self.reference_width}x{self.reference_height} (tolerance {tolerance}px)"
        )
        self.resize_window()
        return False

    def resize_window(self):
        if not self.hwnd:
            return

        rect = win32gui.GetWindowRect(self.hwnd)
        client = win32gui.GetClientRect(self.hwnd)
        border_width = (rect[2] - rect[0]) - (client[2] - client[0])
        border_height = (rect[3] - rect[1]) - (client[3] - client[1])

        SWP_NOZORDER = 0x0004
        SWP_SHOWWINDOW = 0x0040
        ctypes.windll.user32.SetWindowPos(
            self.hwnd, 0, int(rect[0]), int(rect[1]),
            int(self.reference_width + border_width), int(self.reference_height + border_height),
            SWP_NOZORDER | SWP_SHOWWINDOW
        )
        logger.info(f"Window resized to {self.reference_width}x{self.reference_height}")

    def capture(self):
        if not self.hwnd:
            self.find_window()

        _, _, width, height = self.get_window_rect()

        hwndDC = win32gui.GetWindowDC(self.hwnd)
        mfcDC = win32ui.CreateDCFromHandle(hwndDC)
        saveDC = mfcDC.CreateCompatibleDC()

        saveBitMap = win32ui.CreateBitmap()
        saveBitMap.CreateCompatibleBitmap(mfcDC, width, height)
        saveDC.SelectObject(saveBitMap)

        # PW_CLIENTONLY | PW_RENDERFULLCONTENT
        ctypes.windll.user32.PrintWindow(self.hwnd, saveDC.GetSafeHdc(), 3)

        bmpstr = saveBitMap.GetBitmapBits(True)
        img = np.frombuffer(bmpstr, dtype=np.uint8)
        img.shape = (height, width, 4)

        win32gui.DeleteObject(saveBitMap.GetHandle())
        saveDC.DeleteDC()
        mfcDC.DeleteDC()
        win32gui.ReleaseDC(self.hwnd, hwndDC)

        return np.ascontiguousarray(img[:, :, :3])

    def is_window_active(self):
        return bool(win32gui.IsWindow(self.hwnd)) if self.hwnd else False
