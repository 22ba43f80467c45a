"""
Non-Maximum Suppression

검출기 출력의 중복 박스를 점수 순으로 억제합니다 (클래스 무관).
"""

from typing import List

import numpy as np

from ..tracking.bytetrack.utils.bbox_utils import calculate_ious_vectorized, tlwh_to_tlbr
from ..utils.data_structure import Detection


def nms(boxes: np.ndarray, scores: np.ndarray, nms_thr: float = 0.45) -> np.ndarray:
    """탐욕적 NMS

    Args:
        boxes: 바운딩 박스 배열 [N, 4] (x1, y1, x2, y2)
        scores: 신뢰도 점수 배열 [N]
        nms_thr: NMS IoU 임계값 (초과 시 억제)

    Returns:
        keep: 유지된 인덱스 배열 (점수 내림차순)
    """
    if len(boxes) == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-np.asarray(scores), kind='stable')
    ious = calculate_ious_vectorized(np.asarray(boxes, dtype=np.float64),
                                     np.asarray(boxes, dtype=np.float64))

    keep = []
    suppressed = np.zeros(len(boxes), dtype=bool)
    for i in order:
        if suppressed[i]:
            continue
        keep.append(i)
        suppressed |= ious[i] > nms_thr

    return np.array(keep, dtype=np.int64)


def apply_nms(detections: List[Detection], nms_thr: float = 0.45) -> List[Detection]:
    """Detection 리스트에 NMS 적용 (점수 내림차순으로 반환)"""
    if not detections:
        return []

    boxes = tlwh_to_tlbr(np.array([det.bbox for det in detections], dtype=np.float64))
    scores = np.array([det.score for det in detections], dtype=np.float64)
    return [detections[i] for i in nms(boxes, scores, nms_thr)]
