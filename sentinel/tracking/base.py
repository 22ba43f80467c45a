"""
트래킹 모듈 기본 클래스

모든 트래커가 구현해야 하는 표준 인터페이스를 정의합니다.
detection -> tracking -> 후단 분석 파이프라인에서 정확한 입/출력을 보장합니다.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Union

import numpy as np

from ..utils.data_structure import (
    Detection, FrameDetections, FrameTracks, TrackSnapshot, TrackerConfig
)

logger = logging.getLogger(__name__)


class TrackIdAllocator:
    """트랙 ID 발급기

    트래커마다 하나씩 소유하며, 같은 인스턴스를 넘겨준 트래커끼리만 ID 공간을 공유합니다.
    발급된 ID는 재사용되지 않습니다.
    """

    def __init__(self, start: int = 1):
        self._start = start
        self._next_id = start

    def next_id(self) -> int:
        track_id = self._next_id
        self._next_id += 1
        return track_id

    @property
    def issued(self) -> int:
        """지금까지 발급한 ID 개수"""
        return self._next_id - self._start


class BaseTracker(ABC):
    """트래킹 모듈 기본 클래스

    Detection 리스트를 입력받아 track_id가 할당된 TrackSnapshot 리스트를 출력합니다.
    """

    # 설정 딕셔너리를 변환할 클래스 (변형마다 기본값이 다름)
    config_class = TrackerConfig

    def __init__(self, config: TrackerConfig, id_allocator: Optional[TrackIdAllocator] = None):
        """
        Args:
            config: 트래킹 설정
            id_allocator: 공유할 ID 발급기 (None이면 새로 생성)
        """
        self.config = config
        self.tracker_name = config.tracker_name
        self.id_allocator = id_allocator if id_allocator is not None else TrackIdAllocator()

        # 트래킹 상태
        self.frame_id = 0

        # 통계
        self.stats = {
            'total_tracks': 0,
            'active_tracks': 0,
            'lost_tracks': 0,
            'removed_tracks': 0,
            'frames_processed': 0
        }

    @abstractmethod
    def update(self, detections: List[Detection], frame: Optional[np.ndarray] = None) -> List[TrackSnapshot]:
        """트래킹 업데이트 (한 프레임 = 한 사이클)

        Args:
            detections: 현재 프레임 검출 결과 (빈 리스트면 예측만 수행)
            frame: 원본 이미지 (외형 특징을 쓰는 트래커만 사용)

        Returns:
            출력 대상 트랙 스냅샷 리스트
        """
        pass

    @abstractmethod
    def reset(self):
        """트래커 리셋"""
        pass

    def validate_detections(self, detections: List[Union[Detection, Dict[str, Any]]]) -> List[Detection]:
        """검출 결과 유효성 검사

        비유한 값, 양수가 아닌 크기, 최소 면적 미만 박스를 제외합니다.
        """
        valid_detections = []

        for detection in detections:
            if isinstance(detection, dict):
                detection = Detection.from_dict(detection)

            if not detection.is_valid():
                logger.debug(f"Dropped degenerate detection: bbox={detection.bbox}, score={detection.score}")
                continue
            if detection.area < self.config.min_box_area:
                logger.debug(f"Dropped small detection: area={detection.area:.1f} < {self.config.min_box_area}")
                continue

            valid_detections.append(detection)

        return valid_detections

    def track_frame(self, frame_detections: FrameDetections,
                    frame: Optional[np.ndarray] = None) -> FrameTracks:
        """FrameDetections에 트래킹 적용"""
        tracks = self.update(frame_detections.detections, frame)
        return FrameTracks(
            frame_idx=frame_detections.frame_idx,
            tracks=tracks,
            timestamp=frame_detections.timestamp,
            metadata={'tracker_name': self.tracker_name, 'frame_id': self.frame_id}
        )

    def track_sequence(self, frames: List[FrameDetections]) -> List[FrameTracks]:
        """검출 시퀀스 전체에 트래킹 적용 (리셋 후 처음부터)"""
        self.reset()
        return [self.track_frame(frame_detections) for frame_detections in frames]

    def get_tracker_info(self) -> Dict[str, Any]:
        """트래커 정보 반환"""
        return {
            'tracker_name': self.tracker_name,
            'high_thresh': self.config.high_thresh,
            'low_thresh': self.config.low_thresh,
            'match_thresh': self.config.match_thresh,
            'track_buffer': self.config.track_buffer,
            'min_hits': self.config.min_hits,
            'current_frame': self.frame_id,
            'statistics': self.stats.copy()
        }

    def set_thresholds(self, high_thresh: Optional[float] = None,
                       low_thresh: Optional[float] = None,
                       match_thresh: Optional[float] = None,
                       track_buffer: Optional[int] = None):
        """임계값 설정 (다음 update부터 반영)

        범위를 벗어나면 ValueError를 발생시키고 기존 값을 유지합니다.
        """
        previous = self.config.to_dict()
        if high_thresh is not None:
            self.config.high_thresh = high_thresh
        if low_thresh is not None:
            self.config.low_thresh = low_thresh
        if match_thresh is not None:
            self.config.match_thresh = match_thresh
        if track_buffer is not None:
            self.config.track_buffer = track_buffer

        try:
            self.config.validate()
        except (TypeError, ValueError):
            for name, value in previous.items():
                setattr(self.config, name, value)
            raise

    def __enter__(self):
        """Context manager 진입"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager 종료"""
        self.reset()
