"""
칼만 필터 구현 - 선택형 모션 모델

기본 블렌딩 모델 대신 공분산 기반 칼만 이득을 사용하고 싶을 때 선택합니다
(motion_model: kalman). 상태 공간과 인터페이스는 ConstantVelocityModel과 같습니다.
"""

from typing import Tuple

import numpy as np
import scipy.linalg

from .motion_model import MEASUREMENT_DIM, clamp_state


class KalmanFilter:
    """
    바운딩 박스 추적을 위한 간단한 칼만 필터

    8차원 상태 공간 (x, y, area, h, vx, vy, va, vh)에서 바운딩 박스를 추적합니다.
    여기서 (x, y)는 중심 좌표, area는 면적, h는 높이이며,
    v는 해당 변수들의 속도입니다.
    """

    def __init__(self):
        ndim, dt = MEASUREMENT_DIM, 1.

        # 상태 전이 행렬 생성
        self._motion_mat = np.eye(2 * ndim, 2 * ndim)
        for i in range(ndim):
            self._motion_mat[i, ndim + i] = dt
        self._update_mat = np.eye(ndim, 2 * ndim)

        # 모션 및 관측 불확실성
        # 큰 불확실성 → 빠른 수렴, 불안정한 추적
        # 작은 불확실성 → 느린 수렴, 안정적인 추적
        self._std_weight_position = 1. / 20
        self._std_weight_velocity = 1. / 160

    def _position_std(self, mean: np.ndarray) -> list:
        h, area = mean[3], mean[2]
        return [
            self._std_weight_position * h,
            self._std_weight_position * h,
            2 * self._std_weight_position * area,
            self._std_weight_position * h
        ]

    def _velocity_std(self, mean: np.ndarray) -> list:
        h, area = mean[3], mean[2]
        return [
            self._std_weight_velocity * h,
            self._std_weight_velocity * h,
            2 * self._std_weight_velocity * area,
            self._std_weight_velocity * h
        ]

    def initiate(self, measurement: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        주어진 바운딩 박스 측정값으로 트랙 상태를 생성합니다.

        Args:
            measurement: (cx, cy, area, h)

        Returns:
            (mean, covariance): 초기 상태 분포
        """
        mean_pos = np.asarray(measurement, dtype=np.float64)
        mean = clamp_state(np.r_[mean_pos, np.zeros_like(mean_pos)])

        std = [2 * s for s in self._position_std(mean)] + [10 * s for s in self._velocity_std(mean)]
        covariance = np.diag(np.square(std))
        return mean, covariance

    def predict(self, mean: np.ndarray, covariance: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        다음 시간 단계로 상태 분포를 예측합니다.

        Args:
            mean: 이전 상태의 평균 벡터 (8,)
            covariance: 이전 상태의 공분산 행렬 (8, 8)
        """
        motion_cov = np.diag(np.square(np.r_[self._position_std(mean), self._velocity_std(mean)]))

        mean = np.dot(self._motion_mat, mean)
        covariance = np.linalg.multi_dot((
            self._motion_mat, covariance, self._motion_mat.T)) + motion_cov

        return clamp_state(mean), covariance

    def project(self, mean: np.ndarray, covariance: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """상태 공간을 측정 공간으로 투영합니다."""
        innovation_cov = np.diag(np.square(self._position_std(mean)))

        mean = np.dot(self._update_mat, mean)
        covariance = np.linalg.multi_dot((
            self._update_mat, covariance, self._update_mat.T))
        return mean, covariance + innovation_cov

    def update(self, mean: np.ndarray, covariance: np.ndarray,
               measurement: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        칼만 필터 업데이트 단계를 수행합니다.

        Args:
            mean: 예측된 상태 평균 (8,)
            covariance: 예측된 상태 공분산 (8, 8)
            measurement: 바운딩 박스 측정값 (4,)
        """
        projected_mean, projected_cov = self.project(mean, covariance)

        chol_factor = scipy.linalg.cho_factor(projected_cov, lower=True, check_finite=False)
        kalman_gain = scipy.linalg.cho_solve(
            chol_factor, np.dot(covariance, self._update_mat.T).T,
            check_finite=False).T
        innovation = np.asarray(measurement, dtype=np.float64) - projected_mean

        new_mean = mean + np.dot(innovation, kalman_gain.T)
        new_covariance = covariance - np.linalg.multi_dot((
            kalman_gain, projected_cov, kalman_gain.T))
        return clamp_state(new_mean), new_covariance
