"""
검출기 출력 디코더 및 NMS 테스트
"""

import numpy as np
import pytest

from sentinel.detection import COCO_CLASSES, YOLODecoder, apply_nms, get_class_name, nms
from sentinel.utils.data_structure import Detection


def make_output(proposals, num_classes=80):
    """proposals: [(cx, cy, w, h, class_id, score)] -> [1, 4 + C, N]"""
    output = np.zeros((1, 4 + num_classes, len(proposals)), dtype=np.float32)
    for j, (cx, cy, w, h, class_id, score) in enumerate(proposals):
        output[0, :4, j] = [cx, cy, w, h]
        output[0, 4 + class_id, j] = score
    return output


def test_coco_classes():
    assert len(COCO_CLASSES) == 80
    assert get_class_name(2) == 'car'
    assert get_class_name(80) == 'unknown'


def test_nms_suppresses_overlapping_boxes():
    boxes = np.array([[0, 0, 10, 10], [1, 1, 11, 11], [50, 50, 60, 60]], dtype=np.float64)
    scores = np.array([0.8, 0.9, 0.7])
    keep = nms(boxes, scores, 0.45)
    assert keep.tolist() == [1, 2]


def test_nms_keeps_boxes_at_threshold():
    # IoU = 50 / 150 ~= 0.33
    boxes = np.array([[0, 0, 10, 10], [5, 0, 15, 10]], dtype=np.float64)
    assert nms(boxes, np.array([0.9, 0.8]), 0.45).tolist() == [0, 1]
    assert nms(boxes, np.array([0.9, 0.8]), 0.3).tolist() == [0]


def test_apply_nms_is_class_agnostic():
    detections = [
        Detection([0, 0, 10, 10], 0.7, 0, 'person'),
        Detection([0, 0, 10, 10], 0.9, 2, 'car'),
    ]
    kept = apply_nms(detections)
    assert len(kept) == 1
    assert kept[0].category_name == 'car'
    assert apply_nms([]) == []


def test_decode_filters_and_suppresses():
    output = make_output([
        (320, 320, 100, 50, 2, 0.9),
        (322, 320, 100, 50, 2, 0.8),   # NMS로 억제
        (100, 100, 20, 20, 0, 0.2),    # 임계값 미만
        (500, 500, 40, 80, 0, 0.6),
    ])
    detections = YOLODecoder(conf_threshold=0.25).decode(output)
    assert len(detections) == 2
    assert detections[0].category_name == 'car'
    assert detections[0].bbox == pytest.approx([270, 295, 100, 50])
    assert detections[0].score == pytest.approx(0.9)
    assert detections[1].category_name == 'person'


def test_decode_scales_to_frame_and_accepts_transposed_output():
    output = make_output([(320, 320, 100, 50, 2, 0.9)])
    decoder = YOLODecoder(input_size=640)

    scaled = decoder.decode(output, frame_shape=(1280, 1280, 3))
    assert scaled[0].bbox == pytest.approx([540, 590, 200, 100])

    transposed = decoder.decode(output.transpose(0, 2, 1))
    assert transposed[0].bbox == pytest.approx([270, 295, 100, 50])


def test_decode_empty_and_invalid_shapes():
    decoder = YOLODecoder()
    assert decoder.decode(np.zeros((1, 84, 0), dtype=np.float32)) == []
    assert decoder.decode(make_output([(10, 10, 5, 5, 1, 0.1)])) == []
    with pytest.raises(ValueError):
        decoder.decode(np.zeros((1, 10, 5), dtype=np.float32))
    with pytest.raises(ValueError):
        decoder.decode(np.zeros((2, 84, 5), dtype=np.float32))
