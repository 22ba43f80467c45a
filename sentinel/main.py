#!/usr/bin/env python3
"""
SENTINEL 트래킹 리플레이 실행기

저장된 프레임별 검출 결과(JSON)를 트래커에 순서대로 입력하고
프레임별 트랙 결과를 JSON으로 저장합니다.

    python -m sentinel.main --detections dets.json --tracker botsort --video clip.mp4
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
from tqdm import tqdm

from . import create_tracker
from .tracking.base import BaseTracker
from .utils.config_loader import get_tracker_settings, load_config
from .utils.data_structure import FrameDetections, FrameTracks

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(log_level: str = 'INFO', log_format: str = DEFAULT_LOG_FORMAT):
    """로깅 설정"""
    level = getattr(logging, log_level.upper())
    logging.basicConfig(level=level, format=log_format)
    logging.getLogger().setLevel(level)


def load_detections(detections_path: str) -> List[FrameDetections]:
    """
    프레임별 검출 JSON 로드

    형식: [{"frame_idx": int, "detections": [{"bbox": [x, y, w, h], "score": ..., ...}]}, ...]

    Raises:
        FileNotFoundError: 파일이 없을 때
        ValueError: 형식이 잘못되었을 때
    """
    path = Path(detections_path)
    if not path.exists():
        raise FileNotFoundError(f"Detections file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, list):
        raise ValueError(f"Detections file must contain a list of frames: {path}")

    try:
        frames = [FrameDetections.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed frame entry in {path}: {e}") from e

    frames.sort(key=lambda fd: fd.frame_idx)
    logger.info(f"Loaded {len(frames)} frames, "
                f"{sum(fd.get_detection_count() for fd in frames)} detections from {path}")
    return frames


class VideoFrameReader:
    """frame_idx 순서로 비디오 프레임을 읽는 리더 (앞으로만 이동)"""

    def __init__(self, video_path: str):
        self.video_path = video_path
        self.cap = cv2.VideoCapture(str(video_path))
        if not self.cap.isOpened():
            raise RuntimeError(f"Cannot open video: {video_path}")

        self.fps = self.cap.get(cv2.CAP_PROP_FPS)
        self.total_frames = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self._position = 0  # 다음에 읽을 프레임 번호

    def read(self, frame_idx: int) -> Optional[np.ndarray]:
        """frame_idx 프레임 반환. 이미 지나갔거나 끝났으면 None"""
        if frame_idx < self._position:
            logger.warning(f"Frame {frame_idx} already passed (position={self._position})")
            return None

        while self._position < frame_idx:
            if not self.cap.grab():
                return None
            self._position += 1

        ret, frame = self.cap.read()
        if not ret:
            return None
        self._position += 1
        return frame

    def release(self):
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


def run_replay(frames: List[FrameDetections], tracker: BaseTracker,
               detection_skip: int = 1, frame_reader: Optional[VideoFrameReader] = None,
               show_progress: bool = True) -> List[FrameTracks]:
    """
    검출 시퀀스를 트래커에 재생

    Args:
        frames: 프레임별 검출 결과 (frame_idx 오름차순)
        tracker: 트래커 인스턴스
        detection_skip: N이면 frame_idx % N == 0인 프레임의 검출만 사용, 나머지는 예측만 수행
        frame_reader: 외형 특징용 비디오 리더 (optional)
        show_progress: tqdm 진행 표시 여부

    Returns:
        프레임별 트랙 결과
    """
    if detection_skip < 1:
        raise ValueError(f"detection_skip must be at least 1, got {detection_skip}")

    results = []
    for frame_detections in tqdm(frames, desc="Tracking frames", disable=not show_progress):
        frame = frame_reader.read(frame_detections.frame_idx) if frame_reader is not None else None

        if frame_detections.frame_idx % detection_skip == 0:
            detections = frame_detections.detections
        else:
            detections = []

        tracks = tracker.update(detections, frame)
        results.append(FrameTracks(
            frame_idx=frame_detections.frame_idx,
            tracks=tracks,
            timestamp=frame_detections.timestamp,
            metadata={'detections_used': len(detections)}
        ))

    info = tracker.get_tracker_info()
    logger.info(f"Replay finished: {len(results)} frames, statistics={info['statistics']}")
    return results


def write_tracks(results: List[FrameTracks], output_path: str):
    """트랙 결과를 JSON으로 저장"""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [{'frame_idx': r.frame_idx, 'tracks': [t.to_dict() for t in r.tracks]} for r in results]
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Saved tracks for {len(results)} frames to {path}")


def build_tracker(config: Dict[str, Any], tracker_name: Optional[str] = None) -> BaseTracker:
    """설정에서 트래커 생성"""
    name, params = get_tracker_settings(config, tracker_name)
    log_interval = config.get('replay', {}).get('log_interval')
    if log_interval is not None:
        params.setdefault('log_interval', log_interval)
    return create_tracker(name, params)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SENTINEL - Tracking replay")
    parser.add_argument('--detections', type=str, required=True,
                        help='Per-frame detections JSON file')
    parser.add_argument('--config', type=str, default='base_config.yaml',
                        help='Configuration file path')
    parser.add_argument('--tracker', type=str, choices=['bytetrack', 'botsort'],
                        help='Override tracker from config')
    parser.add_argument('--video', type=str,
                        help='Source video for appearance features')
    parser.add_argument('--detection-skip', type=int,
                        help='Use detections every N frames (predict-only in between)')
    parser.add_argument('--output', type=str, default='output/tracks.json',
                        help='Output tracks JSON file')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level')
    parser.add_argument('--no-progress', action='store_true',
                        help='Disable progress bar')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """메인 실행 함수"""
    args = parse_args(argv)

    config = load_config(args.config)
    logging_config = config.get('logging', {})
    setup_logging(args.log_level or logging_config.get('level', 'INFO'),
                  logging_config.get('format', DEFAULT_LOG_FORMAT))

    replay_config = config.get('replay', {})
    detection_skip = args.detection_skip or replay_config.get('detection_skip', 1)

    try:
        frames = load_detections(args.detections)
        tracker = build_tracker(config, args.tracker)
        logger.info(f"Tracker: {tracker.get_tracker_info()}")

        if args.video:
            with VideoFrameReader(args.video) as reader:
                results = run_replay(frames, tracker, detection_skip, reader, not args.no_progress)
        else:
            if tracker.tracker_name == 'botsort':
                logger.warning("No video given: botsort falls back to IoU-only association")
            results = run_replay(frames, tracker, detection_skip, None, not args.no_progress)

        write_tracks(results, args.output)

    except KeyboardInterrupt:
        logger.info("Execution interrupted by user")
        return 130
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error(f"Replay failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
