import logging
from dataclasses import dataclass

import cv2
import numpy as np

import config
from exceptions import FrameProcessingError, ImageLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionResult:
    object_name: str
    location: tuple
    confidence: float


def load_template_image(template_path):
    template = cv2.imread(str(template_path), cv2.IMREAD_COLOR)
    if template is None:
        raise ImageLoadError(f"Template not found or unreadable: {template_path}")
    return template


def key_background(image, lower=None, upper=None):
    lower = np.array(lower or config.TEMPLATE_BACKGROUND_LOWER, dtype=np.uint8)
    upper = np.array(upper or config.TEMPLATE_BACKGROUND_UPPER, dtype=np.uint8)

    mask = cv2.inRange(image, lower, upper)
    if not mask.any():
        return image

    keyed = image.copy()
    keyed[mask > 0] = 0
    return keyed


def scale_image(image, scale_factor):
    if scale_factor == 1.0:
        return image
    return cv2.resize(image, None, fx=scale_factor, fy=scale_factor, interpolation=cv2.INTER_AREA)


class TemplateMatcher:
    def __init__(self, base_scale_factor):
        self.base_scale_factor = base_scale_factor

    def find_all(self, frame, template, use_grayscale=True):
        """Find every placement of ``template`` in an already scaled ``frame``.

        The best remaining peak of the correlation map is taken until it drops
        below the template threshold; the template-sized area around each peak
        is cleared so the same object is not reported twice. Locations are
        mapped back to the unscaled frame.

        Raises FrameProcessingError when OpenCV rejects any of the inputs.
        """
        template_image = template.gray_image if use_grayscale else template.image
        scale_factor = template.resolution or self.base_scale_factor

        try:
            scaled_template = scale_image(template_image, scale_factor)

            if scaled_template.shape[0] > frame.shape[0] or scaled_template.shape[1] > frame.shape[1]:
                logger.debug(f"[{template.name}] Template is larger than frame. Template: {scaled_template.shape}, Frame: {frame.shape}")
                return []

            result = cv2.matchTemplate(frame, scaled_template, cv2.TM_CCOEFF_NORMED)
            _, thresholded = cv2.threshold(result, template.threshold, 1.0, cv2.THRESH_BINARY)
            mask = (thresholded * 255).astype(np.uint8)
        except cv2.error as exc:
            raise FrameProcessingError(f"Matching '{template.name}' failed: {exc}") from exc

        h, w = scaled_template.shape[:2]
        matches = []

        while mask.any():
            _, max_val, _, max_loc = cv2.minMaxLoc(result, mask)
            if max_loc[0] < 0 or max_val < template.threshold:
                break

            x, y = max_loc
            matches.append(DetectionResult(
                object_name=template.name,
                location=(int(x / self.base_scale_factor), int(y / self.base_scale_factor)),
                confidence=float(max_val),
            ))

            left = x - w // 2
            top = y - h // 2
            region = (slice(max(top, 0), top + h), slice(max(left, 0), left + w))
            result[region] = 0
            mask[region] = 0

        return matches
