"""
트래킹을 위한 데이터 어소시에이션 유틸리티

IoU 기반 유사도 행렬과 탐욕적(greedy) 이분 매칭을 구현합니다.
외형 특징이 있으면 IoU와 코사인 유사도를 가중 결합할 수 있습니다.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .bbox_utils import cosine_similarity, iou_matrix, is_empty_descriptor

# blend_fn(iou, track_feature, detection_feature) -> score
BlendFn = Callable[[float, Optional[np.ndarray], Optional[np.ndarray]], float]


def make_appearance_blend(appearance_weight: float) -> BlendFn:
    """
    IoU와 외형 코사인 유사도를 결합하는 함수 생성

    두 특징이 모두 존재하고 0이 아닐 때만 결합하며,
    그렇지 않으면 IoU를 그대로 반환합니다.

    Args:
        appearance_weight: 외형 유사도 가중치 (0.0 ~ 1.0)
    """
    def blend(iou: float, track_feature: Optional[np.ndarray],
              detection_feature: Optional[np.ndarray]) -> float:
        if is_empty_descriptor(track_feature) or is_empty_descriptor(detection_feature):
            return iou
        return (1 - appearance_weight) * iou + appearance_weight * cosine_similarity(
            track_feature, detection_feature)

    return blend


def similarity_matrix(tracks: Sequence, detections: Sequence,
                      detection_features: Optional[Sequence[Optional[np.ndarray]]] = None,
                      blend_fn: Optional[BlendFn] = None) -> np.ndarray:
    """
    트랙-검출 유사도 행렬 계산

    카테고리가 다른 쌍은 -inf로 채워 후보에서 제외합니다.

    Args:
        tracks: tlwh, category_id, appearance 속성을 가진 트랙 리스트
        detections: Detection 리스트
        detection_features: 검출별 외형 특징 (검출과 같은 순서)
        blend_fn: IoU와 외형 유사도를 결합하는 함수

    Returns:
        [len(tracks), len(detections)] 형태의 유사도 행렬
    """
    if len(tracks) == 0 or len(detections) == 0:
        return np.zeros((len(tracks), len(detections)), dtype=np.float64)

    scores = iou_matrix([t.tlwh for t in tracks], [d.tlwh for d in detections])

    # 카테고리 게이트
    track_categories = np.array([t.category_id for t in tracks])
    det_categories = np.array([d.category_id for d in detections])
    scores[track_categories[:, np.newaxis] != det_categories[np.newaxis, :]] = -np.inf

    if blend_fn is not None and detection_features is not None:
        for i, track in enumerate(tracks):
            for j, feature in enumerate(detection_features):
                if np.isfinite(scores[i, j]):
                    scores[i, j] = blend_fn(scores[i, j], track.appearance, feature)

    return scores


def greedy_assignment(score_matrix: np.ndarray,
                      threshold: float) -> Tuple[List[Tuple[int, int]], List[int], List[int]]:
    """
    점수 행렬에 대한 탐욕적 매칭

    임계값 이상인 쌍을 (트랙, 검출) 순서로 나열하고 점수 내림차순으로
    안정 정렬한 뒤, 양쪽 모두 아직 비어 있는 쌍만 순서대로 수락합니다.

    Returns:
        (matches, unmatched_tracks, unmatched_detections)
    """
    num_tracks, num_dets = score_matrix.shape
    if score_matrix.size == 0:
        return [], list(range(num_tracks)), list(range(num_dets))

    rows, cols = np.nonzero(score_matrix >= threshold)
    order = np.argsort(-score_matrix[rows, cols], kind='stable')

    matched_tracks = set()
    matched_dets = set()
    matches = []
    for k in order:
        r, c = int(rows[k]), int(cols[k])
        if r in matched_tracks or c in matched_dets:
            continue
        matched_tracks.add(r)
        matched_dets.add(c)
        matches.append((r, c))

    unmatched_tracks = [t for t in range(num_tracks) if t not in matched_tracks]
    unmatched_dets = [d for d in range(num_dets) if d not in matched_dets]
    return matches, unmatched_tracks, unmatched_dets


def associate(tracks: Sequence, detections: Sequence, threshold: float,
              detection_features: Optional[Sequence[Optional[np.ndarray]]] = None,
              blend_fn: Optional[BlendFn] = None) -> Tuple[List[Tuple[int, int]], List[int], List[int]]:
    """
    트랙과 검출을 연결합니다.

    Args:
        tracks: 트랙 리스트 (예측된 박스 기준)
        detections: 검출 리스트
        threshold: 유사도 임계값 (0, 1]
        detection_features: 검출별 외형 특징 (optional)
        blend_fn: 유사도 결합 함수 (optional)

    Returns:
        (matches, unmatched_tracks, unmatched_detections): 인덱스 기반 매칭 결과
    """
    if not 0 < threshold <= 1:
        raise ValueError(f"threshold must be in (0, 1], got {threshold}")
    if detection_features is not None and len(detection_features) != len(detections):
        raise ValueError("detection_features must align with detections")

    scores = similarity_matrix(tracks, detections, detection_features, blend_fn)
    return greedy_assignment(scores, threshold)
