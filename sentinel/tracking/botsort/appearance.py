"""
외형 특징 추출기

바운딩 박스 영역의 거친 색상 히스토그램(빨강/초록 채널 4단계 양자화, 16 bins)을
재식별용 외형 특징으로 사용합니다.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

# 채널 순서별 (red, green) 인덱스
CHANNEL_INDICES = {
    'bgr': (2, 1),
    'bgra': (2, 1),
    'rgb': (0, 1),
    'rgba': (0, 1),
}


class AppearanceExtractor:
    """색상 히스토그램 외형 특징 추출기"""

    def __init__(self, num_levels: int = 4, channel_order: str = 'bgr'):
        """
        Args:
            num_levels: 채널별 양자화 단계 수 (bins = num_levels ** 2)
            channel_order: 입력 이미지 채널 순서 (OpenCV 기본값 'bgr')
        """
        if channel_order not in CHANNEL_INDICES:
            raise ValueError(f"Unknown channel_order: {channel_order}. Available: {list(CHANNEL_INDICES)}")
        if num_levels < 1 or 256 % num_levels != 0:
            raise ValueError(f"num_levels must divide 256, got {num_levels}")

        self.num_levels = num_levels
        self.bin_width = 256 // num_levels
        self.channel_order = channel_order

    @property
    def num_bins(self) -> int:
        return self.num_levels * self.num_levels

    def extract(self, frame: np.ndarray, tlwh: Sequence[float]) -> np.ndarray:
        """
        박스 영역의 정규화된 히스토그램 계산

        Args:
            frame: [H, W, C] 또는 [H, W] uint8 이미지
            tlwh: [x, y, w, h] 바운딩 박스

        Returns:
            (num_bins,) 히스토그램. 영역이 비어 있으면 전부 0
        """
        histogram = np.zeros(self.num_bins, dtype=np.float64)

        x, y, w, h = [int(np.floor(v)) for v in tlwh]
        height, width = frame.shape[:2]
        x1, y1 = max(0, x), max(0, y)
        x2, y2 = min(width, x + w), min(height, y + h)
        if x2 <= x1 or y2 <= y1:
            return histogram

        region = frame[y1:y2, x1:x2]
        if region.ndim == 2:
            red = green = region
        else:
            r_idx, g_idx = CHANNEL_INDICES[self.channel_order]
            red, green = region[..., r_idx], region[..., g_idx]

        bins = (red.astype(np.int64) // self.bin_width) * self.num_levels + \
            (green.astype(np.int64) // self.bin_width)
        counts = np.bincount(bins.ravel(), minlength=self.num_bins)[:self.num_bins]

        count = bins.size
        return counts.astype(np.float64) / (count + 1e-8)

    def extract_batch(self, frame: Optional[np.ndarray],
                      boxes: Sequence[Sequence[float]]) -> List[Optional[np.ndarray]]:
        """여러 박스에 대한 특징 추출. 프레임이 없으면 전부 None"""
        if frame is None:
            return [None] * len(boxes)
        if frame.ndim not in (2, 3):
            logger.warning(f"Unsupported frame shape for appearance extraction: {frame.shape}")
            return [None] * len(boxes)
        return [self.extract(frame, box) for box in boxes]
