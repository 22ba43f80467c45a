"""
통합 설정 로더

YAML 파일과 argparse 인수를 통합하여 일관된 설정을 제공합니다.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)

# 설정 파일 기본 경로
CONFIG_DIR = Path(__file__).parent.parent / "configs"


class ConfigLoader:
    """설정 로더"""

    def __init__(self, config_dir: Union[str, Path, None] = None):
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR

    def resolve_path(self, config_file: Union[str, Path]) -> Path:
        """설정 파일 경로 결정 (절대 경로 -> 현재 디렉토리 -> configs 디렉토리 순)"""
        config_path = Path(config_file)
        if config_path.is_absolute() or config_path.exists():
            return config_path
        return self.config_dir / config_file

    def load_yaml(self, config_file: Union[str, Path]) -> Dict[str, Any]:
        """YAML 설정 파일 로드 (base_config 상속 지원)"""
        config_path = self.resolve_path(config_file)

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}")
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config {config_path}: {e}")
            return {}

        if not isinstance(config, dict):
            logger.error(f"Config root must be a mapping: {config_path}")
            return {}

        # base_config 상속 처리
        if 'base_config' in config:
            base_config_file = config.pop('base_config')
            base_config = ConfigLoader(config_path.parent).load_yaml(base_config_file)
            config = self._merge_configs(base_config, config)

        logger.info(f"Loaded config from: {config_path}")
        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """설정 병합 (재귀적)"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result


def load_config(config_file: Union[str, Path] = "base_config.yaml",
                args_dict: Optional[Dict[str, Any]] = None,
                config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """편의 함수: YAML 설정 로드 후 인수로 오버라이드"""
    loader = ConfigLoader(config_dir)
    config = loader.load_yaml(config_file)

    if args_dict:
        # None 값은 지정되지 않은 인수로 취급
        overrides = {k: v for k, v in args_dict.items() if v is not None}
        config = loader._merge_configs(config, overrides)

    return config


def get_tracker_settings(config: Dict[str, Any],
                         tracker_name: Optional[str] = None) -> Tuple[str, Dict[str, Any]]:
    """
    설정에서 사용할 트래커 이름과 파라미터 추출

    tracking.presets.<name> 위에 tracking.overrides를 덮어씁니다.

    Args:
        config: load_config 결과
        tracker_name: 지정 시 tracking.tracker_name보다 우선

    Returns:
        (tracker_name, tracker 파라미터 딕셔너리)
    """
    tracking = config.get('tracking', {}) or {}
    name = tracker_name or tracking.get('tracker_name', 'bytetrack')

    presets = tracking.get('presets', {}) or {}
    params = dict(presets.get(name, {}) or {})
    params.update(tracking.get('overrides', {}) or {})
    params['tracker_name'] = name
    return name, params
