"""
등속 모션 모델 (고정 가중치 블렌딩)

공분산 없이 8차원 상태 (cx, cy, area, h, vx, vy, va, vh)를 유지합니다.
측정 갱신은 칼만 이득 대신 고정 가중치(alpha)로 측정값 쪽으로 당기는 방식입니다.
"""

from typing import Optional, Tuple

import numpy as np

from ..utils.bbox_utils import MIN_AREA, MIN_HEIGHT

STATE_DIM = 8
MEASUREMENT_DIM = 4


def clamp_state(mean: np.ndarray) -> np.ndarray:
    """면적/높이를 양수 하한으로 고정 (NaN/inf 상태 전파 방지)

    하한에 걸린 성분의 음수 속도는 0으로 둡니다.
    """
    for pos, floor in ((2, MIN_AREA), (3, MIN_HEIGHT)):
        if mean[pos] < floor:
            mean[pos] = floor
            mean[MEASUREMENT_DIM + pos] = max(mean[MEASUREMENT_DIM + pos], 0.)
    return mean


class ConstantVelocityModel:
    """
    고정 가중치 블렌딩을 사용하는 등속 모델

    predict: 위치 성분 += 속도 성분 (dt = 1 프레임)
    update:  위치 성분 = (1 - alpha) * 상태 + alpha * 측정값
             속도 성분은 측정값으로 재설정되지 않고, 블렌딩 보정량에
             velocity_weight를 곱한 만큼만 움직입니다 (0이면 고정).
    """

    def __init__(self, alpha: float = 0.6, velocity_weight: float = 0.0):
        self.alpha = alpha
        self.velocity_weight = velocity_weight

        # 상태 전이 행렬
        self._motion_mat = np.eye(STATE_DIM)
        for i in range(MEASUREMENT_DIM):
            self._motion_mat[i, MEASUREMENT_DIM + i] = 1.

    def initiate(self, measurement: np.ndarray) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """측정값 (cx, cy, area, h)으로 초기 상태 생성 (속도 0)"""
        mean = np.r_[np.asarray(measurement, dtype=np.float64), np.zeros(MEASUREMENT_DIM)]
        return clamp_state(mean), None

    def predict(self, mean: np.ndarray,
                covariance: Optional[np.ndarray] = None) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        mean = np.dot(self._motion_mat, mean)
        return clamp_state(mean), covariance

    def update(self, mean: np.ndarray, covariance: Optional[np.ndarray],
               measurement: np.ndarray) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        mean = np.array(mean, dtype=np.float64)
        correction = self.alpha * (np.asarray(measurement, dtype=np.float64) - mean[:MEASUREMENT_DIM])
        mean[:MEASUREMENT_DIM] += correction
        mean[MEASUREMENT_DIM:] += self.velocity_weight * correction
        return clamp_state(mean), covariance
