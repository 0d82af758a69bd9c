"""Shared fixtures: detectors built from synthetic barrel textures."""
import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(Path(__file__).parent))

from object_detector import ObjectDetector
from synthetic import make_texture

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)


@pytest.fixture
def barrel_textures():
    return {level: make_texture(seed=level) for level in range(1, 6)}


@pytest.fixture
def barrel_detector(barrel_textures):
    """Barrel 1..5 followed by an always-active Empty template, full scale."""
    detector = ObjectDetector(1.0, max_workers=4)
    for level, texture in barrel_textures.items():
        detector.add_template(f"Barrel {level}", texture, 0.9, 15, color=(200, 40 * level, 20))
    detector.add_template("Empty", make_texture(seed=99), 0.9, 15, color=(0, 0, 0), always_active=True)
    return detector
