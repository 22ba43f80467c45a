"""
BoT-SORT 트래커

ByteTrack의 2단계 연결에 색상 히스토그램 외형 특징을 결합한 변형입니다.
2단계 매칭 임계값을 완화(match_thresh * 0.7)해 재식별 재현율을 높입니다.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ...utils.data_structure import Detection
from ..bytetrack.byte_tracker import ByteTracker, ByteTrackerConfig
from ..bytetrack.utils.matching import BlendFn, make_appearance_blend
from .appearance import AppearanceExtractor

logger = logging.getLogger(__name__)


@dataclass
class BoTSORTConfig(ByteTrackerConfig):
    """BoT-SORT 설정"""
    tracker_name: str = 'botsort'
    high_thresh: float = 0.6
    match_thresh: float = 0.25
    second_match_relax: float = 0.7
    track_buffer: int = 40              # 재식별을 위해 더 긴 버퍼
    appearance_weight: float = 0.5      # IoU와 외형 유사도 균형
    channel_order: str = 'bgr'


class BoTSORT(ByteTracker):
    """외형 특징을 사용하는 BoT-SORT 트래커"""

    config_class = BoTSORTConfig

    def __init__(self, config=None, id_allocator=None):
        super().__init__(config, id_allocator)
        channel_order = getattr(self.config, 'channel_order', 'bgr')
        self.appearance_extractor = AppearanceExtractor(channel_order=channel_order)

    def _extract_features(self, frame: Optional[np.ndarray],
                          detections: List[Detection]) -> Optional[List[Optional[np.ndarray]]]:
        """유효 검출마다 외형 특징 계산 (프레임이 없으면 IoU만 사용)"""
        if frame is None:
            return None
        return self.appearance_extractor.extract_batch(frame, [det.tlwh for det in detections])

    def _blend_fn(self) -> Optional[BlendFn]:
        if self.config.appearance_weight <= 0:
            return None
        return make_appearance_blend(self.config.appearance_weight)

    def get_tracker_info(self):
        info = super().get_tracker_info()
        info['appearance_weight'] = self.config.appearance_weight
        info['appearance_bins'] = self.appearance_extractor.num_bins
        return info
