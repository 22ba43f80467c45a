"""
바운딩 박스 변환 유틸리티

트래커에서 사용하는 바운딩 박스 형식 변환 및 유사도 함수들입니다.
"""

import numpy as np
from typing import Optional, Sequence, Union

# 높이/면적 하한 (폭 = 면적 / 높이 계산 시 발산 방지)
MIN_HEIGHT = 1e-3
MIN_AREA = 1e-6


def convert_bbox_to_z(tlwh: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    """
    [x, y, w, h] 형태의 바운딩 박스를 [center_x, center_y, area, height] 형태로 변환

    Args:
        tlwh: [x, y, w, h] 형태의 바운딩 박스

    Returns:
        [center_x, center_y, area, height] 형태의 배열
    """
    x, y, w, h = np.asarray(tlwh, dtype=np.float64)
    return np.array([x + w / 2., y + h / 2., w * h, h], dtype=np.float64)


def convert_z_to_bbox(z: np.ndarray) -> np.ndarray:
    """
    [center_x, center_y, area, height] 형태를 [x, y, w, h] 형태로 변환

    높이는 MIN_HEIGHT 이상으로 고정한 뒤 폭을 계산합니다.
    """
    cx, cy = z[0], z[1]
    h = max(float(z[3]), MIN_HEIGHT)
    w = max(float(z[2]), MIN_AREA) / h
    return np.array([cx - w / 2., cy - h / 2., w, h], dtype=np.float64)


def tlwh_to_tlbr(tlwh: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    ret = np.array(tlwh, dtype=np.float64)
    ret[..., 2:] += ret[..., :2]
    return ret


def calculate_iou(tlwh1: Sequence[float], tlwh2: Sequence[float]) -> float:
    """
    두 바운딩 박스 간의 IoU를 계산합니다.

    Args:
        tlwh1: [x, y, w, h] 형태의 바운딩 박스
        tlwh2: [x, y, w, h] 형태의 바운딩 박스

    Returns:
        IoU 값 (0.0 ~ 1.0)
    """
    x1 = max(tlwh1[0], tlwh2[0])
    y1 = max(tlwh1[1], tlwh2[1])
    x2 = min(tlwh1[0] + tlwh1[2], tlwh2[0] + tlwh2[2])
    y2 = min(tlwh1[1] + tlwh1[3], tlwh2[1] + tlwh2[3])

    if x2 <= x1 or y2 <= y1:
        return 0.0

    intersection = (x2 - x1) * (y2 - y1)
    union = tlwh1[2] * tlwh1[3] + tlwh2[2] * tlwh2[3] - intersection

    if union <= 0:
        return 0.0

    return float(intersection / union)


def calculate_ious_vectorized(boxes1: np.ndarray, boxes2: np.ndarray) -> np.ndarray:
    """
    두 바운딩 박스 배열 간의 IoU를 벡터화하여 계산합니다.

    Args:
        boxes1: [N, 4] 형태의 바운딩 박스 배열 (x1, y1, x2, y2)
        boxes2: [M, 4] 형태의 바운딩 박스 배열 (x1, y1, x2, y2)

    Returns:
        [N, M] 형태의 IoU 행렬
    """
    boxes1_expanded = boxes1[:, np.newaxis, :]  # [N, 1, 4]
    boxes2_expanded = boxes2[np.newaxis, :, :]  # [1, M, 4]

    x1 = np.maximum(boxes1_expanded[:, :, 0], boxes2_expanded[:, :, 0])
    y1 = np.maximum(boxes1_expanded[:, :, 1], boxes2_expanded[:, :, 1])
    x2 = np.minimum(boxes1_expanded[:, :, 2], boxes2_expanded[:, :, 2])
    y2 = np.minimum(boxes1_expanded[:, :, 3], boxes2_expanded[:, :, 3])

    intersection = np.maximum(0.0, x2 - x1) * np.maximum(0.0, y2 - y1)

    area1 = (boxes1[:, 2] - boxes1[:, 0]) * (boxes1[:, 3] - boxes1[:, 1])  # [N]
    area2 = (boxes2[:, 2] - boxes2[:, 0]) * (boxes2[:, 3] - boxes2[:, 1])  # [M]

    union = area1[:, np.newaxis] + area2[np.newaxis, :] - intersection

    # 0으로 나누기 방지
    safe_union = np.where(union > 1e-6, union, 1.0)
    return np.where(union > 1e-6, intersection / safe_union, 0.0)


def iou_matrix(atlwhs: Sequence[np.ndarray], btlwhs: Sequence[np.ndarray]) -> np.ndarray:
    """
    두 [x, y, w, h] 리스트 간의 IoU 행렬을 계산합니다.

    Returns:
        [len(atlwhs), len(btlwhs)] 형태의 IoU 행렬
    """
    if len(atlwhs) == 0 or len(btlwhs) == 0:
        return np.zeros((len(atlwhs), len(btlwhs)), dtype=np.float64)

    atlbrs = tlwh_to_tlbr(np.asarray(atlwhs, dtype=np.float64).reshape(-1, 4))
    btlbrs = tlwh_to_tlbr(np.asarray(btlwhs, dtype=np.float64).reshape(-1, 4))
    return calculate_ious_vectorized(atlbrs, btlbrs)


def is_empty_descriptor(feature: Optional[np.ndarray]) -> bool:
    """외형 특징이 없거나 전부 0인지 확인"""
    return feature is None or not np.any(feature)


def cosine_similarity(a: Optional[np.ndarray], b: Optional[np.ndarray]) -> float:
    """
    두 특징 벡터의 코사인 유사도

    길이가 다르거나 한쪽이 비어 있으면 0을 반환합니다.
    """
    if a is None or b is None:
        return 0.0
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0
    denom = np.linalg.norm(a) * np.linalg.norm(b) + 1e-8
    return float(np.dot(a, b) / denom)
