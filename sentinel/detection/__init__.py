"""
검출기 출력 계약

YOLO 출력 디코딩과 NMS만 포함합니다 (모델 추론은 외부).
"""

from .coco_classes import COCO_CLASSES, get_class_name
from .decoder import YOLODecoder
from .nms import nms, apply_nms

__all__ = ['COCO_CLASSES', 'get_class_name', 'YOLODecoder', 'nms', 'apply_nms']
