import cv2
import numpy as np
import pytest

from exceptions import FrameProcessingError, ImageLoadError
from object_detector import ObjectDetector, ObjectTemplate
from synthetic import blank_frame, make_texture, place
from template_matcher import DetectionResult


BARREL_2_SPOTS = [(10, 10), (120, 10), (10, 120)]
BARREL_4_SPOT = (120, 120)


@pytest.fixture
def barrel_frame(barrel_textures):
    frame = blank_frame()
    for x, y in BARREL_2_SPOTS:
        place(frame, barrel_textures[2], x, y)
    place(frame, barrel_textures[4], *BARREL_4_SPOT)
    return frame


class TestObjectTemplate:
    def test_grayscale_variant_is_derived(self):
        texture = make_texture(seed=1)
        template = ObjectTemplate("Barrel 1", texture, 0.9, 10)

        assert template.gray_image.shape == texture.shape[:2]
        assert np.array_equal(template.gray_image, texture[:, :, 0])
        assert template.size == (20, 20)

    def test_grayscale_input_is_promoted_to_bgr(self):
        template = ObjectTemplate("Barrel 1", make_texture(seed=1)[:, :, 0], 0.9, 10)
        assert template.image.shape == (20, 20, 3)

    def test_background_colour_is_keyed_out(self):
        texture = make_texture(seed=1)
        texture[0, 0] = (152, 193, 152)

        template = ObjectTemplate("Barrel 1", texture, 0.9, 10)

        assert template.image[0, 0].tolist() == [0, 0, 0]

    @pytest.mark.parametrize("threshold, min_distance", [(-0.1, 10), (0.9, -1)])
    def test_negative_parameters_are_rejected(self, threshold, min_distance):
        with pytest.raises(ValueError):
            ObjectTemplate("Barrel 1", make_texture(seed=1), threshold, min_distance)

    def test_missing_file_raises_image_load_error(self, tmp_path):
        with pytest.raises(ImageLoadError):
            ObjectTemplate.from_file("Barrel 1", tmp_path / "missing.png", 0.9, 10)

    def test_undecodable_file_raises_image_load_error(self, tmp_path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not an image")
        with pytest.raises(ImageLoadError):
            ObjectTemplate.from_file("Barrel 1", broken, 0.9, 10)


class TestTemplateStore:
    def test_add_template_from_path(self, tmp_path):
        path = tmp_path / "barrel1.png"
        cv2.imwrite(str(path), make_texture(seed=1))
        detector = ObjectDetector(1.0)

        template = detector.add_template("Barrel 1", str(path), 0.9, 10, color=(10, 20, 30))

        assert detector.get_template("Barrel 1") is template
        assert template.color == (10, 20, 30)
        assert np.array_equal(template.image, make_texture(seed=1))

    def test_add_template_missing_path_fails(self, tmp_path):
        detector = ObjectDetector(1.0)
        with pytest.raises(ImageLoadError):
            detector.add_template("Barrel 1", str(tmp_path / "nope.png"), 0.9, 10)
        assert detector.templates == []

    def test_duplicate_names_are_rejected(self):
        detector = ObjectDetector(1.0)
        detector.add_template("Barrel 1", make_texture(seed=1), 0.9, 10)
        with pytest.raises(ValueError):
            detector.add_template("Barrel 1", make_texture(seed=2), 0.9, 10)

    def test_lookup_by_name(self, barrel_detector):
        assert barrel_detector.get_template("Barrel 3").name == "Barrel 3"
        assert barrel_detector.get_template("Barrel 42") is None

    def test_adding_template_resets_active_range(self, barrel_detector):
        barrel_detector.active_range.update([2], [t.name for t in barrel_detector.templates])
        assert not barrel_detector.active_range.is_full_range

        barrel_detector.add_template("Barrel 6", make_texture(seed=6), 0.9, 15)

        assert barrel_detector.active_range.is_full_range
        assert barrel_detector.active_range.bounds == (0, 6)
        assert len(barrel_detector.get_active_templates()) == 7


class TestFilterCloseDetections:
    @pytest.fixture
    def detector(self):
        detector = ObjectDetector(1.0)
        detector.add_template("Barrel 1", make_texture(seed=1), 0.9, 10)
        detector.add_template("Barrel 2", make_texture(seed=2), 0.9, 10)
        return detector

    def test_closer_than_min_distance_keeps_best(self, detector):
        detections = [
            DetectionResult("Barrel 2", (109, 50), 0.91),
            DetectionResult("Barrel 1", (100, 50), 0.97),
        ]

        filtered = detector.filter_close_detections(detections)

        assert filtered == [DetectionResult("Barrel 1", (100, 50), 0.97)]

    def test_farther_than_min_distance_keeps_both(self, detector):
        detections = [
            DetectionResult("Barrel 2", (111, 50), 0.91),
            DetectionResult("Barrel 1", (100, 50), 0.97),
        ]

        filtered = detector.filter_close_detections(detections)

        assert [d.object_name for d in filtered] == ["Barrel 1", "Barrel 2"]

    def test_distance_is_euclidean(self, detector):
        detections = [
            DetectionResult("Barrel 1", (0, 0), 0.99),
            DetectionResult("Barrel 2", (5, 8), 0.95),
            DetectionResult("Barrel 2", (6, 8), 0.94),
        ]

        filtered = detector.filter_close_detections(detections)

        # (5, 8) is 9.4px away, (6, 8) exactly 10px
        assert [d.location for d in filtered] == [(0, 0), (6, 8)]

    def test_unknown_template_is_dropped(self, detector):
        detections = [
            DetectionResult("Ghost", (0, 0), 0.99),
            DetectionResult("Barrel 1", (200, 200), 0.95),
        ]

        filtered = detector.filter_close_detections(detections)

        assert [d.object_name for d in filtered] == ["Barrel 1"]


class TestDetectObjects:
    def test_end_to_end_barrels(self, barrel_detector, barrel_frame):
        detections, elapsed_ms = barrel_detector.detect_objects(barrel_frame, True)

        assert len(detections) == 4
        found = sorted((d.object_name, d.location) for d in detections)
        expected = sorted([("Barrel 2", spot) for spot in BARREL_2_SPOTS] + [("Barrel 4", BARREL_4_SPOT)])
        assert found == expected
        assert all(d.confidence >= 0.9 for d in detections)
        assert elapsed_ms >= 0

        # levels 0..12 cover the whole store
        assert not barrel_detector.active_range.is_full_range
        assert barrel_detector.active_range.bounds == (0, 5)

    def test_detections_are_sorted_by_confidence(self, barrel_detector, barrel_frame):
        detections, _ = barrel_detector.detect_objects(barrel_frame, True)
        confidences = [d.confidence for d in detections]
        assert confidences == sorted(confidences, reverse=True)

    def test_color_mode(self, barrel_detector, barrel_frame):
        detections, _ = barrel_detector.detect_objects(barrel_frame, False)
        assert len(detections) == 4

    def test_repeated_calls_are_deterministic(self, barrel_detector, barrel_frame):
        first, _ = barrel_detector.detect_objects(barrel_frame, True)
        second, _ = barrel_detector.detect_objects(barrel_frame, True)
        third, _ = barrel_detector.detect_objects(barrel_frame, True)

        assert first == second == third

    def test_empty_frame_resets_active_range(self, barrel_detector, barrel_frame):
        barrel_detector.detect_objects(barrel_frame, True)
        assert not barrel_detector.active_range.is_full_range

        detections, _ = barrel_detector.detect_objects(blank_frame(), True)

        assert detections == []
        assert barrel_detector.active_range.is_full_range

    def test_always_active_template_is_searched_outside_range(self, barrel_detector, barrel_textures):
        barrel_detector.active_range.start = 0
        barrel_detector.active_range.end = 1
        barrel_detector.active_range.is_full_range = False
        frame = blank_frame()
        place(frame, make_texture(seed=99), 50, 50)
        place(frame, barrel_textures[5], 150, 150)

        detections, _ = barrel_detector.detect_objects(frame, True)

        assert [d.object_name for d in detections] == ["Empty"]

    def test_base_scale_maps_back_to_frame_coordinates(self):
        texture = make_texture(seed=3, size=20, block=2)
        detector = ObjectDetector(0.5)
        detector.add_template("Barrel 3", texture, 0.9, 10)
        frame = place(blank_frame(200, 200), texture, 40, 60)

        detections, _ = detector.detect_objects(frame, True)

        assert [d.location for d in detections] == [(40, 60)]

    def test_failing_template_does_not_block_others(self, barrel_detector, barrel_frame):
        barrel_detector.add_template("Barrel 9", make_texture(seed=9), 0.9, 15, resolution=0.001)

        detections, _ = barrel_detector.detect_objects(barrel_frame, True)

        assert len(detections) == 4

    def test_empty_store_detects_nothing(self):
        detector = ObjectDetector(0.5)
        detections, _ = detector.detect_objects(blank_frame(), True)
        assert detections == []
        assert detector.active_range.is_full_range

    def test_invalid_frame_raises(self, barrel_detector):
        with pytest.raises(FrameProcessingError):
            barrel_detector.detect_objects(np.zeros((0, 0, 3), dtype=np.uint8), True)


def test_draw_detections_outlines_in_template_colour(barrel_detector):
    image = blank_frame()
    detections = [
        DetectionResult("Barrel 2", (30, 40), 0.98),
        DetectionResult("Ghost", (100, 100), 0.99),
    ]

    barrel_detector.draw_detections(image, detections)

    # Barrel 2 colour is RGB (200, 80, 20)
    assert image[40, 30].tolist() == [20, 80, 200]
    assert image[60, 50].tolist() == [20, 80, 200]
    assert not image[100:120, 100:120].any()
