"""
트랙 생애주기 관리자

트랙 컬렉션을 단독으로 소유하며 생성, 상태 전이, 제거, 출력을 담당합니다.
임계값(track_buffer, min_hits 등)은 호출 시점마다 설정 객체에서 읽습니다.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ....utils.data_structure import Detection, TrackSnapshot, TrackerConfig
from ..models.track import STrack, TrackState
from .kalman_filter import KalmanFilter
from .motion_model import ConstantVelocityModel

logger = logging.getLogger(__name__)


def build_motion_model(config: TrackerConfig):
    """설정에 맞는 모션 모델 생성"""
    if config.motion_model == 'kalman':
        return KalmanFilter()
    return ConstantVelocityModel(alpha=config.alpha, velocity_weight=config.velocity_weight)


class TrackManager:
    """트랙 생애주기 관리자"""

    def __init__(self, config: TrackerConfig, id_allocator):
        """
        Args:
            config: 트래커 설정 (호출 시점마다 참조)
            id_allocator: TrackIdAllocator 인스턴스
        """
        self.config = config
        self.id_allocator = id_allocator
        self.motion_model = build_motion_model(config)
        self.tracks: List[STrack] = []

        self.total_created = 0
        self.total_removed = 0

    def _sync_motion_model(self):
        """alpha, velocity_weight 변경을 모션 모델에 반영 (모델 종류는 생성/리셋 시점에 고정)"""
        if isinstance(self.motion_model, ConstantVelocityModel):
            self.motion_model.alpha = self.config.alpha
            self.motion_model.velocity_weight = self.config.velocity_weight

    def predict_all(self):
        """모든 트랙 상태 예측"""
        self._sync_motion_model()
        for track in self.tracks:
            track.predict()

    def update_track(self, track: STrack, detection: Detection, frame_id: int,
                     appearance: Optional[np.ndarray] = None):
        """매칭된 트랙 갱신. 연속 매칭 수가 min_hits에 도달하면 확정합니다."""
        was_lost = track.state == TrackState.Lost
        track.update(detection, frame_id, appearance, self.config.appearance_momentum)

        if not track.is_activated and track.hits >= self.config.min_hits:
            track.confirm()
        if was_lost:
            logger.debug(f"Track {track.track_id} recovered at frame {frame_id}")

    def mark_unmatched_lost(self, tracks: Sequence[STrack]):
        """이번 사이클에 매칭되지 않은 트랙을 Lost로 표시"""
        for track in tracks:
            if track.state != TrackState.Lost:
                logger.debug(f"Track {track.track_id} lost at frame {track.frame_id}")
            track.mark_lost()

    def spawn_from_unmatched(self, detections: Sequence[Detection], frame_id: int,
                             appearances: Optional[Sequence[Optional[np.ndarray]]] = None) -> List[STrack]:
        """미매칭 고신뢰 검출마다 새 트랙 생성"""
        new_tracks = []
        for i, detection in enumerate(detections):
            appearance = appearances[i] if appearances is not None else None
            track = STrack(detection, appearance)
            track.activate(self.motion_model, self.id_allocator.next_id(), frame_id)
            if track.hits >= self.config.min_hits:
                track.confirm()
            new_tracks.append(track)

        self.tracks.extend(new_tracks)
        self.total_created += len(new_tracks)
        return new_tracks

    def prune(self) -> List[STrack]:
        """frames_since_update가 track_buffer 이상인 트랙 제거"""
        track_buffer = self.config.track_buffer
        kept, removed = [], []
        for track in self.tracks:
            if track.time_since_update >= track_buffer:
                track.mark_removed()
                removed.append(track)
            else:
                kept.append(track)

        self.tracks = kept
        self.total_removed += len(removed)
        if removed:
            logger.debug(f"Removed tracks: {[t.track_id for t in removed]}")
        return removed

    def emit(self) -> List[TrackSnapshot]:
        """확정 이력이 있고 버퍼 이내인 트랙의 스냅샷 (생성 순서)"""
        track_buffer = self.config.track_buffer
        return [
            track.to_snapshot() for track in self.tracks
            if track.is_activated
            and track.state != TrackState.Removed
            and track.time_since_update < track_buffer
        ]

    def reset(self):
        """트랙 컬렉션 초기화 (발급된 ID는 재사용하지 않음)"""
        self.tracks = []
        self.motion_model = build_motion_model(self.config)
        self.total_created = 0
        self.total_removed = 0

    def count_by_state(self, state: int) -> int:
        return sum(1 for t in self.tracks if t.state == state)

    @property
    def active_count(self) -> int:
        return self.count_by_state(TrackState.Tracked)

    @property
    def lost_count(self) -> int:
        return self.count_by_state(TrackState.Lost)

    def __len__(self):
        return len(self.tracks)
