#!/usr/bin/env python3
"""
트래킹 ID 일관성 분석 도구

리플레이 결과(tracks JSON)에서 ID별 지속 구간과 매칭 비율을 분석합니다.

    python -m sentinel.tools.analyze_tracking_ids output/tracks.json
"""

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List

LONG_TERM_FRAMES = 30
MEDIUM_TERM_FRAMES = 10


def collect_id_stats(frames: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    ID별 통계 계산

    Args:
        frames: [{"frame_idx": int, "tracks": [{"track_id": ..., "frames_since_update": ...}]}]

    Returns:
        ids(ID별 start/end/duration/active_frames/consistency), 지속성 분류, ID 변화 횟수
    """
    id_frames = defaultdict(list)      # 출력된 프레임
    id_matched = defaultdict(int)      # 검출과 매칭된 프레임 수
    frame_ids = []

    for frame in frames:
        frame_idx = frame['frame_idx']
        ids = []
        for track in frame.get('tracks', []):
            track_id = track['track_id']
            id_frames[track_id].append(frame_idx)
            if track.get('frames_since_update', 0) == 0:
                id_matched[track_id] += 1
            ids.append(track_id)
        frame_ids.append((frame_idx, ids))

    id_stats = {}
    for track_id, seen in id_frames.items():
        duration = max(seen) - min(seen) + 1
        id_stats[track_id] = {
            'start': min(seen),
            'end': max(seen),
            'duration': duration,
            'active_frames': id_matched[track_id],
            'consistency': id_matched[track_id] / duration if duration > 0 else 0.0
        }

    # 지속 시간별 ID 분류
    buckets = {'long_term': [], 'medium_term': [], 'short_term': []}
    for track_id, stats in id_stats.items():
        if stats['duration'] >= LONG_TERM_FRAMES:
            buckets['long_term'].append(track_id)
        elif stats['duration'] >= MEDIUM_TERM_FRAMES:
            buckets['medium_term'].append(track_id)
        else:
            buckets['short_term'].append(track_id)

    # ID 집합 변화 횟수
    id_changes = 0
    prev_ids = None
    for _, ids in frame_ids:
        current_ids = set(ids)
        if prev_ids is not None and prev_ids != current_ids:
            id_changes += 1
        prev_ids = current_ids

    return {
        'total_frames': len(frames),
        'total_ids': len(id_stats),
        'ids': id_stats,
        'buckets': buckets,
        'id_changes': id_changes,
        'frame_ids': frame_ids
    }


def analyze_tracking_ids(tracks_file_path: str) -> Dict[str, Any]:
    """트래킹 ID 일관성 분석 (결과 출력)"""
    with open(tracks_file_path, 'r', encoding='utf-8') as f:
        frames = json.load(f)

    result = collect_id_stats(frames)
    total_frames = result['total_frames']

    print(f"로드된 총 프레임 수: {total_frames}")
    print()
    print("=== ID 일관성 분석 ===")
    print(f"총 사용된 트래킹 ID 수: {result['total_ids']}")

    buckets = result['buckets']
    print(f"\n=== ID 지속성 분석 ===")
    print(f"장기 ID ({LONG_TERM_FRAMES}+ 프레임): {len(buckets['long_term'])}개")
    print(f"중기 ID ({MEDIUM_TERM_FRAMES}-{LONG_TERM_FRAMES - 1} 프레임): {len(buckets['medium_term'])}개")
    print(f"단기 ID (1-{MEDIUM_TERM_FRAMES - 1} 프레임): {len(buckets['short_term'])}개")

    if buckets['long_term']:
        print(f"\n=== 장기 ID 상세 정보 ===")
        long_term = sorted(buckets['long_term'], key=lambda tid: result['ids'][tid]['duration'], reverse=True)
        for track_id in long_term:
            stats = result['ids'][track_id]
            print(f"ID {track_id}: {stats['start']}-{stats['end']}프레임 "
                  f"(지속:{stats['duration']}, 매칭:{stats['active_frames']}, "
                  f"일관성:{stats['consistency']:.2f})")

    print(f"\n=== 프레임별 ID 변화 분석 (처음 30프레임) ===")
    print("프레임 | ID 개수 | 트래킹 ID들")
    print("-" * 40)
    for frame_idx, ids in result['frame_ids'][:30]:
        ids_str = str(sorted(ids)) if ids else "[]"
        print(f"{frame_idx:6} | {len(ids):7} | {ids_str}")

    id_changes = result['id_changes']
    print(f"\n=== ID 안정성 지표 ===")
    print(f"총 ID 변화 횟수: {id_changes}")
    print(f"평균 ID 변화 간격: {total_frames / id_changes:.1f}프레임" if id_changes > 0 else "ID 변화 없음")
    print(f"ID 안정성 점수: {(1 - id_changes / total_frames) * 100:.1f}%" if total_frames > 0 else "0%")

    return result


def main(argv: List[str] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("사용법: python -m sentinel.tools.analyze_tracking_ids <tracks.json>")
        return 1

    tracks_file = argv[0]
    if not Path(tracks_file).exists():
        print(f"파일을 찾을 수 없습니다: {tracks_file}")
        return 1

    analyze_tracking_ids(tracks_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
