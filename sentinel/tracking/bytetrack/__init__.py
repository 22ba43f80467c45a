"""
ByteTracker Implementation

고신뢰/저신뢰 2단계 연결 방식의 ByteTrack 알고리즘입니다.
"""

from .byte_tracker import ByteTracker, ByteTrackerConfig
from .models.track import STrack, TrackState

__all__ = ['ByteTracker', 'ByteTrackerConfig', 'STrack', 'TrackState']
