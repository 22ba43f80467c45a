"""
Utils 패키지 - 공통 유틸리티 모듈
"""

from .data_structure import (
    Detection, TrackSnapshot, FrameDetections, FrameTracks, TrackerConfig
)
from .factory import TRACKER_REGISTRY, TrackerRegistry

__all__ = [
    # 데이터 구조
    'Detection',
    'TrackSnapshot',
    'FrameDetections',
    'FrameTracks',
    'TrackerConfig',

    # 트래커 레지스트리
    'TrackerRegistry',
    'TRACKER_REGISTRY'
]
