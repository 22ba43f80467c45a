"""
STrack 클래스 - 트래커의 핵심 트랙 객체

하나의 트랙이 가진 운동 상태, 외형 특징, 생애주기 카운터를 관리합니다.
"""

from typing import Optional

import numpy as np

from ....utils.data_structure import Detection, TrackSnapshot
from ..utils.bbox_utils import convert_bbox_to_z, convert_z_to_bbox, is_empty_descriptor


class TrackState:
    """트랙 상태"""
    New = 0        # 생성 직후, 아직 확정되지 않음
    Tracked = 1    # 확정되어 외부로 출력됨
    Lost = 2       # 최근 매칭 없음, 예측만 수행
    Removed = 3    # 관리 목록에서 제거됨

    names = {New: 'new', Tracked: 'tracked', Lost: 'lost', Removed: 'removed'}


class STrack:
    """Single Track 클래스"""

    def __init__(self, detection: Detection, appearance: Optional[np.ndarray] = None):
        """
        Args:
            detection: 트랙을 생성한 검출 결과
            appearance: 외형 특징 벡터 (optional)
        """
        # 트랙 정보
        self.track_id = None
        self.is_activated = False

        # 검출 정보 (카테고리는 생성 이후 변경되지 않음)
        self.score = float(detection.score)
        self.category_id = detection.category_id
        self.category_name = detection.category_name
        self._tlwh = detection.tlwh

        # 모션 상태
        self.motion_model = None
        self.mean, self.covariance = None, None

        # 트래킹 상태
        self.state = TrackState.New
        self.frame_id = 0
        self.start_frame = 0

        # 외형 특징
        self.appearance = None if is_empty_descriptor(appearance) else np.asarray(appearance, dtype=np.float64)

        # 생애주기 카운터
        self.age = 0
        self.hits = 0
        self.time_since_update = 0

    def activate(self, motion_model, track_id: int, frame_id: int):
        """트랙 시작 (상태 초기화 및 ID 부여)"""
        self.motion_model = motion_model
        self.track_id = track_id
        self.mean, self.covariance = self.motion_model.initiate(convert_bbox_to_z(self._tlwh))

        self.hits = 1
        self.time_since_update = 0
        self.state = TrackState.New
        self.frame_id = frame_id
        self.start_frame = frame_id

    def predict(self):
        """등속 예측. 직전 프레임이 미매칭이었다면 연속 히트 수를 초기화합니다."""
        self.age += 1
        if self.time_since_update > 0:
            self.hits = 0
        self.time_since_update += 1
        self.mean, self.covariance = self.motion_model.predict(self.mean, self.covariance)

    def update(self, detection: Detection, frame_id: int,
               appearance: Optional[np.ndarray] = None, momentum: float = 0.9):
        """매칭된 검출로 트랙 갱신"""
        self.frame_id = frame_id
        self.hits += 1
        self.time_since_update = 0

        self.mean, self.covariance = self.motion_model.update(
            self.mean, self.covariance, convert_bbox_to_z(detection.tlwh)
        )

        self.score = float(detection.score)
        self.update_appearance(appearance, momentum)
        self.state = TrackState.Tracked if self.is_activated else TrackState.New

    def confirm(self):
        """트랙 확정 (이후로는 출력 대상)"""
        self.is_activated = True
        self.state = TrackState.Tracked

    def update_appearance(self, feature: Optional[np.ndarray], momentum: float = 0.9):
        """외형 특징 블렌딩. 빈 특징은 무시합니다."""
        if is_empty_descriptor(feature):
            return
        feature = np.asarray(feature, dtype=np.float64)
        if self.appearance is None or self.appearance.shape != feature.shape:
            self.appearance = feature.copy()
        else:
            self.appearance = momentum * self.appearance + (1 - momentum) * feature

    def mark_lost(self):
        """트랙을 잃어버림으로 표시"""
        self.state = TrackState.Lost

    def mark_removed(self):
        """트랙을 제거됨으로 표시"""
        self.state = TrackState.Removed

    def end_frame(self) -> int:
        """트랙의 마지막 매칭 프레임"""
        return self.frame_id

    @property
    def tlwh(self) -> np.ndarray:
        """현재 (예측된) 바운딩 박스를 [x, y, w, h] 형태로 반환"""
        if self.mean is None:
            return self._tlwh.copy()
        return convert_z_to_bbox(self.mean[:4])

    @property
    def tlbr(self) -> np.ndarray:
        """바운딩 박스를 [x1, y1, x2, y2] 형태로 반환"""
        ret = self.tlwh.copy()
        ret[2:] += ret[:2]
        return ret

    def to_snapshot(self) -> TrackSnapshot:
        """외부 출력용 읽기 전용 스냅샷"""
        return TrackSnapshot(
            track_id=self.track_id,
            bbox=self.tlwh.tolist(),
            score=self.score,
            category_id=self.category_id,
            category_name=self.category_name,
            age=self.age,
            hits=self.hits,
            frames_since_update=self.time_since_update,
            state=TrackState.names[self.state]
        )

    def __repr__(self):
        return f"OT_{self.track_id}_({self.start_frame}-{self.end_frame()})"
