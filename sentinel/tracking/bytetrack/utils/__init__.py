"""
ByteTracker 유틸리티 모듈
"""

from .bbox_utils import (
    convert_bbox_to_z,
    convert_z_to_bbox,
    calculate_iou,
    iou_matrix,
    cosine_similarity
)
from .matching import associate, greedy_assignment, make_appearance_blend

__all__ = [
    'convert_bbox_to_z',
    'convert_z_to_bbox',
    'calculate_iou',
    'iou_matrix',
    'cosine_similarity',
    'associate',
    'greedy_assignment',
    'make_appearance_blend'
]
