"""
ByteTracker 메인 구현

고신뢰/저신뢰 검출을 두 단계로 연결하는 ByteTrack 알고리즘입니다.
고신뢰 검출만 새 트랙을 만들고, 저신뢰 검출은 기존 트랙을 이어 주는 데만 쓰입니다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from ...utils.data_structure import Detection, TrackSnapshot, TrackerConfig
from ..base import BaseTracker, TrackIdAllocator
from .core.track_manager import TrackManager
from .utils.matching import BlendFn, associate

logger = logging.getLogger(__name__)


@dataclass
class ByteTrackerConfig(TrackerConfig):
    """ByteTracker 설정"""
    tracker_name: str = 'bytetrack'
    high_thresh: float = 0.5
    match_thresh: float = 0.25
    second_match_relax: float = 1.0
    track_buffer: int = 30


class ByteTracker(BaseTracker):
    """ByteTrack 트래커"""

    config_class = ByteTrackerConfig

    def __init__(self, config: Union[TrackerConfig, Dict[str, Any], None] = None,
                 id_allocator: Optional[TrackIdAllocator] = None):
        """
        Args:
            config: 트래커 설정 (TrackerConfig 또는 딕셔너리)
            id_allocator: 다른 트래커와 공유할 ID 발급기 (optional)
        """
        if config is None:
            config = self.config_class()
        elif isinstance(config, dict):
            config = self.config_class.from_dict(config)

        super().__init__(config, id_allocator)
        self.track_manager = TrackManager(self.config, self.id_allocator)

    def _extract_features(self, frame: Optional[np.ndarray],
                          detections: List[Detection]) -> Optional[List[Optional[np.ndarray]]]:
        """검출별 외형 특징 (ByteTrack은 사용하지 않음)"""
        return None

    def _blend_fn(self) -> Optional[BlendFn]:
        """IoU 결합 함수 (ByteTrack은 IoU만 사용)"""
        return None

    def _split_detections(self, detections: List[Detection]) -> Tuple[List[int], List[int]]:
        """신뢰도별 검출 인덱스 분리"""
        high_thresh = self.config.high_thresh
        low_thresh = self.config.low_thresh

        high_idx = [i for i, det in enumerate(detections) if det.score >= high_thresh]
        low_idx = [i for i, det in enumerate(detections) if low_thresh < det.score < high_thresh]
        return high_idx, low_idx

    def update(self, detections: List[Detection], frame: Optional[np.ndarray] = None) -> List[TrackSnapshot]:
        """
        프레임별 트래킹 업데이트

        Args:
            detections: 검출 결과 리스트 (Detection 또는 딕셔너리)
            frame: 원본 이미지 (외형 특징 추출용, optional)

        Returns:
            출력 대상 트랙 스냅샷 리스트

        Raises:
            ValueError: 설정 값이 범위를 벗어난 경우 (트랙 상태는 변경되지 않음)
        """
        self.config.validate()

        self.frame_id += 1
        manager = self.track_manager

        detections = self.validate_detections(detections)
        features = self._extract_features(frame, detections)
        blend_fn = self._blend_fn()

        # 기존 트랙 예측
        manager.predict_all()
        track_pool = list(manager.tracks)

        high_idx, low_idx = self._split_detections(detections)
        high_det = [detections[i] for i in high_idx]
        low_det = [detections[i] for i in low_idx]
        high_feat = [features[i] for i in high_idx] if features is not None else None
        low_feat = [features[i] for i in low_idx] if features is not None else None

        # 1단계: 전체 트랙 x 고신뢰 검출
        matches, u_track, u_detection = associate(
            track_pool, high_det, self.config.match_thresh, high_feat, blend_fn
        )
        for itracked, idet in matches:
            manager.update_track(track_pool[itracked], high_det[idet], self.frame_id,
                                 high_feat[idet] if high_feat is not None else None)
        logger.debug(f"frame {self.frame_id} stage1: matches={len(matches)}, "
                     f"u_track={len(u_track)}, u_detection={len(u_detection)}")

        # 2단계: 1단계 미매칭 트랙 x 저신뢰 검출
        remain_tracks = [track_pool[i] for i in u_track]
        matches_second, u_track_second, _ = associate(
            remain_tracks, low_det, self.config.second_match_thresh, low_feat, blend_fn
        )
        for itracked, idet in matches_second:
            manager.update_track(remain_tracks[itracked], low_det[idet], self.frame_id,
                                 low_feat[idet] if low_feat is not None else None)
        logger.debug(f"frame {self.frame_id} stage2: matches={len(matches_second)}, "
                     f"u_track={len(u_track_second)}, low_det={len(low_det)}")

        # 미매칭 트랙 처리
        manager.mark_unmatched_lost([remain_tracks[i] for i in u_track_second])

        # 새로운 트랙 생성 (1단계 미매칭 고신뢰 검출만)
        new_tracks = manager.spawn_from_unmatched(
            [high_det[i] for i in u_detection], self.frame_id,
            [high_feat[i] for i in u_detection] if high_feat is not None else None
        )

        removed = manager.prune()
        output = manager.emit()

        self._update_stats(len(removed))
        self._log_frame(len(detections), len(high_det), len(low_det),
                        len(matches) + len(matches_second), len(new_tracks), output)
        return output

    def _update_stats(self, removed_count: int):
        self.stats['frames_processed'] += 1
        self.stats['total_tracks'] = self.track_manager.total_created
        self.stats['active_tracks'] = self.track_manager.active_count
        self.stats['lost_tracks'] = self.track_manager.lost_count
        self.stats['removed_tracks'] += removed_count

    def _log_frame(self, num_detections: int, num_high: int, num_low: int,
                   num_matched: int, num_new: int, output: List[TrackSnapshot]):
        # 처음 5프레임과 log_interval마다 요약 로깅
        should_log = (self.frame_id <= 5) or (self.frame_id % self.config.log_interval == 0)
        if not should_log:
            return

        logger.info(f"{self.tracker_name} frame {self.frame_id}: input detections={num_detections}, "
                    f"output tracks={len(output)}")
        logger.info(f"  high_det={num_high}, low_det={num_low}, matched={num_matched}, new={num_new}")

        total_tracks = len(self.track_manager)
        if total_tracks > self.config.max_tracks_warning:
            logger.warning(f"  HIGH TRACK COUNT: total={total_tracks} "
                           f"(tracked={self.track_manager.active_count}, lost={self.track_manager.lost_count})")

        if output:
            logger.info(f"  active track IDs: {[t.track_id for t in output]}")

    def reset(self):
        """트래커 상태 초기화 (ID 발급기는 유지)"""
        self.track_manager.reset()
        self.frame_id = 0
        for key in self.stats:
            self.stats[key] = 0

    def get_tracker_info(self) -> Dict[str, Any]:
        info = super().get_tracker_info()
        info['second_match_thresh'] = self.config.second_match_thresh
        info['motion_model'] = self.config.motion_model
        info['live_track_count'] = len(self.track_manager)
        return info
