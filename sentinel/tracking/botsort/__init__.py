"""
BoT-SORT Implementation

ByteTrack에 색상 히스토그램 외형 특징을 결합한 재식별 강화 트래커입니다.
"""

from .appearance import AppearanceExtractor
from .bot_sort import BoTSORT, BoTSORTConfig

__all__ = ['AppearanceExtractor', 'BoTSORT', 'BoTSORTConfig']
