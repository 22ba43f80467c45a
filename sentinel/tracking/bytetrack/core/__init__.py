"""
모션 모델과 트랙 생애주기 관리
"""

from .motion_model import ConstantVelocityModel
from .kalman_filter import KalmanFilter
from .track_manager import TrackManager, build_motion_model

__all__ = ['ConstantVelocityModel', 'KalmanFilter', 'TrackManager', 'build_motion_model']
