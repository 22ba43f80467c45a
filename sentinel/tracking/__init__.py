"""
트래킹 모듈

detection과 후단 분석 사이에서 정확한 입/출력을 통한 트래킹 처리를 제공합니다.
표준화된 인터페이스를 통해 다양한 트래커를 폴더 단위로 교체할 수 있습니다.

지원 트래커:
- ByteTracker: 고신뢰/저신뢰 2단계 연결
- BoTSORT: ByteTrack + 색상 히스토그램 외형 특징
"""

from .base import BaseTracker, TrackIdAllocator
from .bytetrack import ByteTracker, ByteTrackerConfig
from .botsort import BoTSORT, BoTSORTConfig

__all__ = [
    'BaseTracker',
    'TrackIdAllocator',
    'ByteTracker',
    'ByteTrackerConfig',
    'BoTSORT',
    'BoTSORTConfig'
]
