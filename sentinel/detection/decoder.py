"""
YOLO 출력 디코더

검출기 출력 텐서를 Detection 리스트로 변환하는 얇은 어댑터입니다.
모델 로딩과 추론은 이 패키지의 범위 밖이며, 추론 결과 배열만 입력으로 받습니다.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..utils.data_structure import Detection
from .coco_classes import COCO_CLASSES
from .nms import apply_nms

logger = logging.getLogger(__name__)


class YOLODecoder:
    """YOLO 계열 ([1, 4 + C, N]) 출력 디코더"""

    def __init__(self, input_size: int = 640, conf_threshold: float = 0.25,
                 nms_threshold: float = 0.45, class_names: Optional[Sequence[str]] = None):
        """
        Args:
            input_size: 모델 입력 크기 (정사각형)
            conf_threshold: 클래스 점수 임계값 (초과해야 유지)
            nms_threshold: NMS IoU 임계값
            class_names: 클래스 이름 목록 (기본 COCO 80)
        """
        self.input_size = input_size
        self.conf_threshold = conf_threshold
        self.nms_threshold = nms_threshold
        self.class_names = tuple(class_names) if class_names is not None else COCO_CLASSES

    def _to_proposals(self, output: np.ndarray) -> np.ndarray:
        """출력을 [N, 4 + C] 형태로 정규화"""
        output = np.asarray(output, dtype=np.float32)
        if output.ndim == 3:
            if output.shape[0] != 1:
                raise ValueError(f"Batch size must be 1, got output shape {output.shape}")
            output = output[0]
        if output.ndim != 2:
            raise ValueError(f"Unexpected output shape: {output.shape}")

        num_attrs = 4 + len(self.class_names)
        if output.shape[0] == num_attrs:
            return output.T
        if output.shape[1] == num_attrs:
            return output
        raise ValueError(f"Output shape {output.shape} does not match {len(self.class_names)} classes")

    def decode(self, output: np.ndarray, frame_shape: Optional[Tuple[int, int]] = None) -> List[Detection]:
        """
        출력 텐서 디코딩

        Args:
            output: [1, 4 + C, N] 또는 [1, N, 4 + C] (중심 좌표 형식, 모델 입력 픽셀 단위)
            frame_shape: 원본 프레임 (height, width). 지정 시 박스를 프레임 크기로 스케일

        Returns:
            NMS가 적용된 Detection 리스트 (점수 내림차순)
        """
        proposals = self._to_proposals(output)
        if len(proposals) == 0:
            return []

        class_scores = proposals[:, 4:]
        class_ids = np.argmax(class_scores, axis=1)
        scores = class_scores[np.arange(len(proposals)), class_ids]

        keep = scores > self.conf_threshold
        if not np.any(keep):
            return []

        boxes = proposals[keep, :4].astype(np.float64)
        scores = scores[keep]
        class_ids = class_ids[keep]

        if frame_shape is not None:
            height, width = frame_shape[:2]
            scale = np.array([width, height, width, height], dtype=np.float64) / self.input_size
            boxes = boxes * scale

        detections = []
        for (cx, cy, w, h), score, class_id in zip(boxes, scores, class_ids):
            detections.append(Detection(
                bbox=[float(cx - w / 2), float(cy - h / 2), float(w), float(h)],
                score=float(score),
                category_id=int(class_id),
                category_name=self.class_names[class_id]
            ))

        result = apply_nms(detections, self.nms_threshold)
        logger.debug(f"Decoded {len(proposals)} proposals -> {len(detections)} above threshold -> {len(result)} after NMS")
        return result
