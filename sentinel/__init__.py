"""
SENTINEL - 실시간 다중 객체 추적 코어

검출기 출력(바운딩 박스 + 신뢰도 + 카테고리)을 프레임 단위로 받아
ID가 유지되는 궤적으로 변환합니다:
1. 검출 출력 디코딩 (YOLO + NMS)
2. 객체 추적 (ByteTrack / BoT-SORT)
3. 궤적 분석 도구 (ID 일관성)

트래커는 레지스트리에 이름으로 등록되어 생성 시점에 교체할 수 있습니다.
"""

import logging

from .utils.factory import TRACKER_REGISTRY, TrackerRegistry
from .utils.data_structure import (
    Detection, TrackSnapshot, FrameDetections, FrameTracks, TrackerConfig
)

logger = logging.getLogger(__name__)


def initialize_factory():
    """기본 트래커 등록"""
    from .tracking.bytetrack import ByteTracker
    from .tracking.botsort import BoTSORT

    TRACKER_REGISTRY.register('bytetrack', ByteTracker)
    TRACKER_REGISTRY.register('botsort', BoTSORT)


def create_tracker(name: str = 'bytetrack', config=None, id_allocator=None):
    """이름으로 트래커 생성 (등록되지 않은 이름이면 ValueError)"""
    return TRACKER_REGISTRY.create(name, config, id_allocator)


initialize_factory()

__version__ = "1.0.0"
__all__ = [
    "TRACKER_REGISTRY", "TrackerRegistry", "initialize_factory", "create_tracker",
    "Detection", "TrackSnapshot", "FrameDetections", "FrameTracks", "TrackerConfig"
]
