import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import config
from exceptions import ImageLoadError
from template_matcher import load_template_image

logger = logging.getLogger(__name__)


class TemplateLoader:
    def __init__(self, base_dir=None, max_workers=None):
        self.base_dir = Path(base_dir) if base_dir else None
        cpu_count = os.cpu_count() or 1
        self.max_workers = max_workers or config.MAX_WORKERS or min(32, cpu_count + 4)
        self._image_cache = {}

    def resolve(self, template_path):
        path = Path(template_path)
        if self.base_dir and not path.is_absolute():
            path = self.base_dir / path
        return path

    def load_images(self, template_settings):
        paths = sorted({self.resolve(entry.path) for entry in template_settings})
        images = {}
        failures = []

        if not paths:
            return images

        if len(paths) == 1:
            try:
                images[paths[0]] = self._load_image(paths[0])
            except ImageLoadError as exc:
                failures.append((paths[0], exc))
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(paths))) as executor:
                futures = {executor.submit(self._load_image, path): path for path in paths}
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        images[path] = future.result()
                    except ImageLoadError as exc:
                        failures.append((path, exc))

        if failures:
            for path, exc in failures:
                logger.error(f"Failed to load template {path}: {exc}")
            missing = ", ".join(sorted(str(path) for path, _ in failures))
            raise ImageLoadError(f"Missing {len(failures)} template images: {missing}")

        return images

    def populate(self, detector, template_settings):
        images = self.load_images(template_settings)

        for entry in template_settings:
            detector.add_template(
                entry.name,
                images[self.resolve(entry.path)],
                entry.threshold,
                entry.min_distance,
                color=entry.color,
                resolution=entry.resolution,
                always_active=entry.always_active,
            )
            logger.info(f"Loaded template: {entry.name}")

        return detector

    def _load_image(self, template_path):
        try:
            mtime = template_path.stat().st_mtime
        except OSError:
            mtime = None

        cached = self._image_cache.get(str(template_path))
        if cached and cached["mtime"] == mtime:
            return cached["data"]

        image = load_template_image(template_path)
        self._image_cache[str(template_path)] = {"mtime": mtime, "data": image}
        return image
