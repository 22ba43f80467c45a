"""
트래커 레지스트리

이름으로 트래커 클래스를 등록하고, 설정 딕셔너리를 각 트래커의 설정 클래스로
변환해 인스턴스를 생성합니다. 변형(bytetrack / botsort)은 생성 시점에 이름으로 선택됩니다.
"""

import inspect
import logging
from typing import Any, Dict, List, Optional, Type, Union

from ..tracking.base import BaseTracker, TrackIdAllocator
from .data_structure import TrackerConfig

logger = logging.getLogger(__name__)


class TrackerRegistry:
    """이름 -> BaseTracker 서브클래스 매핑"""

    def __init__(self):
        self._trackers: Dict[str, Type[BaseTracker]] = {}

    def register(self, name: str, tracker_class: Type[BaseTracker]):
        """트래커 등록 (같은 이름이면 교체)"""
        if not inspect.isclass(tracker_class) or not issubclass(tracker_class, BaseTracker):
            raise ValueError(f"Tracker must be a BaseTracker subclass, got {tracker_class!r}")
        if inspect.isabstract(tracker_class):
            raise ValueError(f"Tracker {tracker_class.__name__} has unimplemented abstract methods")

        self._trackers[name] = tracker_class
        logger.debug(f"Registered tracker: {name} -> {tracker_class.__name__}")

    def create(self, name: str,
               config: Union[TrackerConfig, Dict[str, Any], None] = None,
               id_allocator: Optional[TrackIdAllocator] = None) -> BaseTracker:
        """
        트래커 인스턴스 생성

        Args:
            name: 등록된 트래커 이름
            config: 설정 객체 또는 딕셔너리 (딕셔너리는 트래커의 config_class로 변환)
            id_allocator: 공유할 ID 발급기 (optional)

        Raises:
            ValueError: 등록되지 않은 이름이거나 설정 값이 범위를 벗어난 경우
        """
        if name not in self._trackers:
            raise ValueError(f"Unknown tracker: {name}. Available: {self.names()}")

        tracker_class = self._trackers[name]
        try:
            if config is None:
                config = tracker_class.config_class()
            elif isinstance(config, dict):
                config = tracker_class.config_class.from_dict(config)
            tracker = tracker_class(config=config, id_allocator=id_allocator)
        except ValueError as e:
            logger.error(f"Failed to create tracker {name}: {e}")
            raise

        logger.info(f"Created tracker instance: {name}")
        return tracker

    def is_registered(self, name: str) -> bool:
        return name in self._trackers

    def names(self) -> List[str]:
        """등록 순서대로 트래커 이름 반환"""
        return list(self._trackers)


TRACKER_REGISTRY = TrackerRegistry()
