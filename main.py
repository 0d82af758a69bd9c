import logging
from pathlib import Path
import sys
import time

import cv2
from pynput import keyboard

import config
from exceptions import BotError
from mouse_controller import MouseController
from object_detector import ObjectDetector
from settings import load_or_create_settings
from table_display import display_results_as_table
from template_loader import TemplateLoader
from window_capture import WindowCapture

running = True
should_exit = False
window_capture = None
mouse_controller = None
detector = None
last_detections = []


def screen_target(detection):
    template = detector.get_template(detection.object_name)
    win_x, win_y, _, _ = window_capture.get_window_rect()
    return mouse_controller.detection_target(detection, template.size, (win_x, win_y))


def click_best_detection():
    logger = logging.getLogger(__name__)
    if not last_detections:
        logger.info("[C pressed] Nothing detected to click")
        return
    best = last_detections[0]
    logger.info(f"[C pressed] Clicking {best.object_name} at {best.location}")
    mouse_controller.click(*screen_target(best))


def drag_best_detections():
    logger = logging.getLogger(__name__)
    if len(last_detections) < 2:
        logger.info("[D pressed] Need two detections to drag")
        return
    source, target = last_detections[0], last_detections[1]
    logger.info(f"[D pressed] Dragging {source.object_name} onto {target.object_name}")
    mouse_controller.drag(*screen_target(source), *screen_target(target))


def on_press(key):
    global running, should_exit
    logger = logging.getLogger(__name__)
    char = getattr(key, 'char', None)

    if char in ('c', 'd') and not (window_capture and mouse_controller and detector):
        logger.info(f"[{char.upper()} pressed] Window not initialized yet")
    elif char == 'c':
        click_best_detection()
    elif char == 'd':
        drag_best_detections()
    elif char == 'x':
        if window_capture and mouse_controller:
            screen_x, screen_y = mouse_controller.get_cursor_position()
            win_x, win_y, win_w, win_h = window_capture.get_window_rect()
            if mouse_controller.is_cursor_in_window(win_x, win_y, win_w, win_h):
                logger.info(f"[X pressed] Window position: ({screen_x - win_x}, {screen_y - win_y})")
            else:
                logger.info(f"[X pressed] Cursor outside window, screen position: ({screen_x}, {screen_y})")
        else:
            logger.info("[X pressed] Window not initialized yet")
    elif char == 'z':
        running = not running
        logger.info("[Z pressed] Detection STARTED" if running else "[Z pressed] Detection PAUSED")
    elif char == 'p':
        logger.info("[P pressed] Exiting program...")
        should_exit = True


def setup_logging():
    logs_dir = Path(config.LOGS_DIR)
    logs_dir.mkdir(exist_ok=True)

    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = logging.DEBUG if config.DEBUG else logging.INFO

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))

    file_handler = logging.FileHandler(logs_dir / 'bot.log', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(log_format))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def build_detector(settings, settings_path):
    detector = ObjectDetector(settings.resolution)
    loader = TemplateLoader(base_dir=Path(settings_path).parent)
    loader.populate(detector, settings.templates)
    return detector


def run_detection(detector, settings):
    global last_detections
    logger = logging.getLogger(__name__)
    last_frame_time = time.monotonic()

    while not should_exit:
        if not running:
            time.sleep(0.1)
            continue

        if not window_capture.is_window_active():
            logger.error(f"Window '{settings.window_title}' is no longer active!")
            break

        frame = window_capture.capture()
        detections, detection_time = detector.detect_objects(frame, settings.convert_to_grayscale)
        last_detections = detections

        now = time.monotonic()
        fps = 1.0 / max(now - last_frame_time, 1e-6)
        last_frame_time = now

        if config.SAVE_RESULT_IMAGE:
            cv2.imwrite(config.RESULT_IMAGE, detector.draw_detections(frame.copy(), detections))

        if config.SHOW_TABLE:
            display_results_as_table(
                detections,
                config.TABLE_COLS,
                config.TABLE_ROWS,
                detector.templates,
                detection_time,
                fps,
            )
        else:
            logger.info(f"{len(detections)} objects detected in {detection_time}ms")

        time.sleep(settings.rescan_delay / 1000)


def main():
    global window_capture, mouse_controller, detector

    print("=" * 60)
    print("Scrap II Bot - Barrel Detection")
    print("=" * 60)
    print(f"Window Title: {config.WINDOW_TITLE}")
    print(f"Settings File: {config.SETTINGS_FILE}")
    print("=" * 60)

    setup_logging()
    logger = logging.getLogger(__name__)

    listener = keyboard.Listener(on_press=on_press)
    listener.start()

    try:
        window_capture = WindowCapture(config.WINDOW_TITLE, config.REFERENCE_WIDTH, config.REFERENCE_HEIGHT)
        settings = load_or_create_settings(
            config.SETTINGS_FILE,
            window_title=config.WINDOW_TITLE,
            window_size=window_capture.get_window_size(),
        )
        window_capture.reference_width = settings.reference_width
        window_capture.reference_height = settings.reference_height
        window_capture.check_window_size()

        mouse_controller = MouseController(settings.human_like_movement, settings.random_offset)
        detector = build_detector(settings, config.SETTINGS_FILE)

        logger.info(f"Detector ready with {len(detector.templates)} templates")
        logger.info("Press Z to PAUSE/RESUME detection")
        logger.info("Press X to see window-relative cursor position")
        logger.info("Press C to click the best detection, D to drag it onto the next one")
        logger.info("Press P to EXIT the program")

        run_detection(detector, settings)
        logger.info("Program exiting...")

    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 0
    except BotError as e:
        logger.error(f"Setup failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        listener.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
