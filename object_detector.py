import logging
import math
import os
import time
from concurrent.futures import ThreadPoolExecutor

import cv2

import config
from active_range import ActiveRange, parse_level
from exceptions import FrameProcessingError, ImageLoadError
from template_matcher import DetectionResult, TemplateMatcher, key_background, load_template_image, scale_image

logger = logging.getLogger(__name__)


class ObjectTemplate:
    def __init__(self, name, image, threshold, min_distance, color=(255, 255, 255), resolution=None, always_active=False):
        if threshold < 0:
            raise ValueError(f"Template '{name}' has a negative threshold: {threshold}")
        if min_distance < 0:
            raise ValueError(f"Template '{name}' has a negative minimum distance: {min_distance}")
        if image is None or image.size == 0:
            raise ImageLoadError(f"Template '{name}' has no image data")

        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

        self.name = name
        self.image = key_background(image)
        self.gray_image = cv2.cvtColor(self.image, cv2.COLOR_BGR2GRAY)
        self.threshold = threshold
        self.min_distance = min_distance
        self.color = tuple(color)
        self.resolution = resolution
        self.always_active = always_active

    @classmethod
    def from_file(cls, name, template_path, threshold, min_distance, color=(255, 255, 255), resolution=None, always_active=False):
        image = load_template_image(template_path)
        return cls(name, image, threshold, min_distance, color, resolution, always_active)

    @property
    def size(self):
        h, w = self.image.shape[:2]
        return w, h

    def __repr__(self):
        return f"ObjectTemplate({self.name!r}, threshold={self.threshold}, min_distance={self.min_distance})"


class ObjectDetector:
    def __init__(self, base_scale_factor, max_workers=None):
        self.templates = []
        self.base_scale_factor = base_scale_factor
        self.active_range = ActiveRange()
        self.matcher = TemplateMatcher(base_scale_factor)
        cpu_count = os.cpu_count() or 1
        self.max_workers = max_workers or config.MAX_WORKERS or min(32, cpu_count + 4)

    def add_template(self, name, image, threshold, min_distance, color=(255, 255, 255), resolution=None, always_active=False):
        if self.get_template(name) is not None:
            raise ValueError(f"Template '{name}' is already registered")

        if isinstance(image, (str, os.PathLike)):
            template = ObjectTemplate.from_file(name, image, threshold, min_distance, color, resolution, always_active)
        else:
            template = ObjectTemplate(name, image, threshold, min_distance, color, resolution, always_active)

        self.templates.append(template)
        self.active_range.reset(len(self.templates))
        logger.debug(f"Registered template {name} ({len(self.templates)} total)")
        return template

    def get_template(self, name):
        for template in self.templates:
            if template.name == name:
                return template
        return None

    def get_active_templates(self):
        return self.active_range.select(self.templates)

    def detect_objects(self, image, convert_to_grayscale=True):
        start_time = time.perf_counter()

        try:
            if convert_to_grayscale and image.ndim == 3:
                working_image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            else:
                working_image = image
            resized = scale_image(working_image, self.base_scale_factor)
        except cv2.error as exc:
            raise FrameProcessingError(f"Failed to prepare frame: {exc}") from exc

        active_templates = self.get_active_templates()
        matches = self._match_templates(resized, active_templates, convert_to_grayscale)
        detections = self.filter_close_detections(matches)

        self.active_range.update(
            [parse_level(detection.object_name) for detection in detections],
            [template.name for template in self.templates],
        )

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(f"Matched {len(active_templates)} templates: {len(matches)} raw, {len(detections)} kept, {elapsed_ms}ms, next range {self.active_range}")
        return detections, elapsed_ms

    def _match_templates(self, frame, templates, use_grayscale):
        if not templates:
            return []

        if len(templates) == 1:
            results = [self._match_template(frame, templates[0], use_grayscale)]
        else:
            workers = min(self.max_workers, len(templates))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(
                    lambda template: self._match_template(frame, template, use_grayscale),
                    templates,
                ))

        return [detection for template_matches in results for detection in template_matches]

    def _match_template(self, frame, template, use_grayscale):
        try:
            return self.matcher.find_all(frame, template, use_grayscale)
        except FrameProcessingError as exc:
            logger.debug(f"[{template.name}] skipped for this frame: {exc}")
            return []

    def filter_close_detections(self, detections):
        ordered = sorted(detections, key=lambda detection: detection.confidence, reverse=True)
        filtered = []
        occupied = []

        for detection in ordered:
            x, y = detection.location
            too_close = any(
                math.hypot(cx - x, cy - y) < min_distance
                for (cx, cy), min_distance in occupied
            )
            if too_close:
                continue

            template = self.get_template(detection.object_name)
            if template is None:
                continue

            occupied.append((detection.location, template.min_distance))
            filtered.append(detection)

        return filtered

    def draw_detections(self, image, detections):
        for detection in detections:
            template = self.get_template(detection.object_name)
            if template is None:
                continue

            red, green, blue = template.color
            color = (int(blue), int(green), int(red))
            x, y = detection.location
            w, h = template.size

            cv2.rectangle(image, (x, y), (x + w, y + h), color, 2)
            cv2.putText(
                image,
                f"{detection.object_name}: {detection.confidence:.2f}",
                (x, y - 5),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.35,
                color,
                1,
            )
        return image
