"""
표준 데이터 구조 정의

검출기 -> 트래커 -> 후단(렌더링/위반 판정) 사이에서 주고받는 데이터 형식을 정의합니다.
모든 모듈 간 일관된 데이터 형식을 보장합니다.
"""

import math
import numbers
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

import numpy as np


@dataclass
class Detection:
    """개별 검출 결과 (프레임마다 새로 생성, 식별자 없음)"""
    bbox: List[float]  # [x, y, w, h] 좌상단 기준, 픽셀 단위
    score: float
    category_id: int = 0
    category_name: str = 'unknown'

    @property
    def tlwh(self) -> np.ndarray:
        """[x, y, w, h] 형태로 반환"""
        return np.asarray(self.bbox, dtype=np.float64)

    @property
    def tlbr(self) -> np.ndarray:
        """[x1, y1, x2, y2] 형태로 반환"""
        ret = self.tlwh.copy()
        ret[2:] += ret[:2]
        return ret

    @property
    def area(self) -> float:
        return float(self.bbox[2] * self.bbox[3])

    def is_valid(self) -> bool:
        """좌표/크기/점수가 유한하고 크기가 양수인지 확인"""
        if len(self.bbox) != 4:
            return False
        values = list(self.bbox) + [self.score]
        if not all(math.isfinite(float(v)) for v in values):
            return False
        return self.bbox[2] > 0 and self.bbox[3] > 0

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            'bbox': [float(v) for v in self.bbox],
            'score': float(self.score),
            'category_id': int(self.category_id),
            'category_name': self.category_name
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Detection':
        """딕셔너리에서 생성 (class_id / class_name 키도 허용)"""
        category_id = data.get('category_id', data.get('class_id', 0))
        category_name = data.get('category_name', data.get('class_name', 'unknown'))
        return cls(
            bbox=[float(v) for v in data['bbox']],
            score=float(data['score']),
            category_id=int(category_id),
            category_name=str(category_name)
        )


@dataclass
class TrackSnapshot:
    """외부로 내보내는 읽기 전용 트랙 정보

    내부 상태 벡터는 포함하지 않습니다.
    """
    track_id: int
    bbox: List[float]  # [x, y, w, h]
    score: float
    category_id: int
    category_name: str
    age: int
    hits: int
    frames_since_update: int
    state: str

    @property
    def center(self) -> Tuple[float, float]:
        return (self.bbox[0] + self.bbox[2] / 2, self.bbox[1] + self.bbox[3] / 2)

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            'track_id': self.track_id,
            'bbox': [float(v) for v in self.bbox],
            'score': float(self.score),
            'category_id': self.category_id,
            'category_name': self.category_name,
            'age': self.age,
            'hits': self.hits,
            'frames_since_update': self.frames_since_update,
            'state': self.state
        }


@dataclass
class FrameDetections:
    """프레임별 검출 데이터"""
    frame_idx: int
    detections: List[Detection] = field(default_factory=list)
    timestamp: Optional[float] = None

    def get_detection_count(self) -> int:
        return len(self.detections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frame_idx': self.frame_idx,
            'detections': [det.to_dict() for det in self.detections],
            'timestamp': self.timestamp
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FrameDetections':
        """딕셔너리에서 생성"""
        return cls(
            frame_idx=int(data['frame_idx']),
            detections=[Detection.from_dict(d) for d in data.get('detections', [])],
            timestamp=data.get('timestamp')
        )


@dataclass
class FrameTracks:
    """프레임별 트래킹 결과"""
    frame_idx: int
    tracks: List[TrackSnapshot]
    timestamp: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_track_by_id(self, track_id: int) -> Optional[TrackSnapshot]:
        """track_id로 트랙 검색"""
        for track in self.tracks:
            if track.track_id == track_id:
                return track
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frame_idx': self.frame_idx,
            'tracks': [track.to_dict() for track in self.tracks],
            'timestamp': self.timestamp,
            'metadata': self.metadata
        }


MOTION_MODELS = ('blend', 'kalman')


def _is_positive_int(value) -> bool:
    """1 이상의 유한한 정수 값인지 확인 (inf/NaN은 False)"""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and int(value) == value and value >= 1


@dataclass
class TrackerConfig:
    """트래커 설정

    모든 값은 매 update 호출 시점에 읽히므로 실행 중 변경이 다음 프레임부터 반영됩니다.
    """
    tracker_name: str = 'bytetrack'
    high_thresh: float = 0.5            # 높은 신뢰도 임계값 (트랙 생성/1단계 매칭)
    low_thresh: float = 0.1             # 낮은 신뢰도 하한 (2단계 매칭)
    match_thresh: float = 0.25          # 1단계 매칭 임계값
    second_match_relax: float = 1.0     # 2단계 임계값 배율 (match_thresh * relax)
    track_buffer: int = 30              # 미매칭 허용 프레임 수
    min_hits: int = 1                   # 확정까지 필요한 연속 매칭 수
    min_box_area: float = 0.0           # 최소 박스 면적
    motion_model: str = 'blend'         # 'blend' 또는 'kalman'
    alpha: float = 0.6                  # 측정값 블렌딩 가중치
    velocity_weight: float = 0.0        # 속도 보정 가중치 (0이면 순수 블렌딩)
    appearance_weight: float = 0.0      # 외형 유사도 가중치
    appearance_momentum: float = 0.9    # 외형 특징 갱신 모멘텀
    log_interval: int = 30              # 요약 로그 주기 (프레임)
    max_tracks_warning: int = 50        # 트랙 수 경고 기준

    def __post_init__(self):
        self.validate()

    def validate(self):
        """수치 범위 검증 (위반 시 ValueError)"""
        def check(name: str, ok: bool, expected: str):
            if not ok:
                raise ValueError(f"{name} must be {expected}, got {getattr(self, name)!r}")

        check('high_thresh', 0 < self.high_thresh <= 1, 'in (0, 1]')
        check('low_thresh', 0 <= self.low_thresh < self.high_thresh, 'in [0, high_thresh)')
        check('match_thresh', 0 < self.match_thresh <= 1, 'in (0, 1]')
        check('second_match_relax', 0 < self.second_match_relax <= 1, 'in (0, 1]')
        check('track_buffer', _is_positive_int(self.track_buffer), 'a positive integer')
        check('min_hits', _is_positive_int(self.min_hits), 'a positive integer')
        check('min_box_area', self.min_box_area >= 0, 'non-negative')
        check('motion_model', self.motion_model in MOTION_MODELS, f'one of {MOTION_MODELS}')
        check('alpha', 0 < self.alpha <= 1, 'in (0, 1]')
        check('velocity_weight', 0 <= self.velocity_weight <= 1, 'in [0, 1]')
        check('appearance_weight', 0 <= self.appearance_weight <= 1, 'in [0, 1]')
        check('appearance_momentum', 0 <= self.appearance_momentum <= 1, 'in [0, 1]')
        check('log_interval', self.log_interval >= 1, 'at least 1')

    @property
    def second_match_thresh(self) -> float:
        return self.match_thresh * self.second_match_relax

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackerConfig':
        """딕셔너리에서 생성 (알 수 없는 키는 무시)"""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
