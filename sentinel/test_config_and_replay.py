"""
설정 로더, 트래커 레지스트리, 리플레이 CLI, ID 분석 도구 테스트
"""

import json

import pytest

from sentinel import TRACKER_REGISTRY, TrackerRegistry, create_tracker
from sentinel.main import VideoFrameReader, load_detections, main, run_replay
from sentinel.tools.analyze_tracking_ids import analyze_tracking_ids, collect_id_stats
from sentinel.tracking import BaseTracker, BoTSORT, ByteTracker, ByteTrackerConfig, TrackIdAllocator
from sentinel.utils.config_loader import ConfigLoader, get_tracker_settings, load_config
from sentinel.utils.data_structure import Detection, FrameDetections


def car_dict(bbox, score=0.9):
    return {'bbox': bbox, 'score': score, 'category_id': 2, 'category_name': 'car'}


@pytest.fixture
def detections_file(tmp_path):
    frames = [
        {'frame_idx': i, 'detections': [car_dict([100 + 2 * i, 100, 50, 80])]}
        for i in range(6)
    ]
    path = tmp_path / 'dets.json'
    path.write_text(json.dumps(frames), encoding='utf-8')
    return path


# --- 설정 ---

def test_base_config_presets():
    config = load_config('base_config.yaml')
    assert config['tracking']['tracker_name'] == 'bytetrack'

    name, params = get_tracker_settings(config)
    assert name == 'bytetrack'
    assert params['track_buffer'] == 30

    name, params = get_tracker_settings(config, 'botsort')
    assert params['appearance_weight'] == 0.5
    assert params['second_match_relax'] == 0.7


def test_preset_inherits_base_config():
    config = load_config('urban_intersection.yaml')
    name, params = get_tracker_settings(config)
    assert name == 'botsort'
    assert params['track_buffer'] == 60
    assert params['high_thresh'] == 0.6
    assert config['replay']['detection_skip'] == 2
    assert config['detection']['nms_threshold'] == 0.45


def test_args_override_yaml():
    config = load_config('base_config.yaml', args_dict={'replay': {'detection_skip': 3}, 'unused': None})
    assert config['replay']['detection_skip'] == 3
    assert config['replay']['log_interval'] == 30
    assert 'unused' not in config


def test_missing_or_broken_config_falls_back_to_empty(tmp_path):
    assert ConfigLoader(tmp_path).load_yaml('nope.yaml') == {}

    broken = tmp_path / 'broken.yaml'
    broken.write_text('tracking: [unclosed', encoding='utf-8')
    assert ConfigLoader(tmp_path).load_yaml(str(broken)) == {}


# --- 레지스트리 ---

def test_registry_selects_variant():
    assert isinstance(create_tracker('bytetrack'), ByteTracker)
    tracker = create_tracker('botsort', {'track_buffer': 55})
    assert isinstance(tracker, BoTSORT)
    assert tracker.config.track_buffer == 55
    assert tracker.config.appearance_weight == 0.5
    assert TRACKER_REGISTRY.names()[:2] == ['bytetrack', 'botsort']


def test_registry_rejects_unknown_tracker():
    with pytest.raises(ValueError):
        create_tracker('deepsort')


def test_registry_rejects_invalid_config():
    with pytest.raises(ValueError):
        create_tracker('bytetrack', {'match_thresh': 2.0})


def test_registry_passes_shared_id_allocator():
    shared = TrackIdAllocator()
    a = create_tracker('bytetrack', id_allocator=shared)
    b = create_tracker('botsort', id_allocator=shared)
    assert a.update([Detection([0, 0, 10, 10], 0.9)])[0].track_id == 1
    assert b.update([Detection([0, 0, 10, 10], 0.9)])[0].track_id == 2


def test_local_registry_uses_tracker_config_class():
    class LongBufferConfig(ByteTrackerConfig):
        pass

    class LongBufferTracker(ByteTracker):
        config_class = LongBufferConfig

    registry = TrackerRegistry()
    registry.register('long', LongBufferTracker)
    tracker = registry.create('long', {'track_buffer': 90, 'unknown_key': 1})
    assert isinstance(tracker.config, LongBufferConfig)
    assert tracker.config.track_buffer == 90
    assert not TRACKER_REGISTRY.is_registered('long')


def test_registry_rejects_non_tracker_classes():
    registry = TrackerRegistry()
    with pytest.raises(ValueError):
        registry.register('broken', lambda config: None)
    with pytest.raises(ValueError):
        registry.register('plain', dict)
    with pytest.raises(ValueError):
        registry.register('abstract', BaseTracker)
    assert registry.names() == []


# --- 리플레이 ---

def test_load_detections(detections_file):
    frames = load_detections(str(detections_file))
    assert len(frames) == 6
    assert frames[0].detections[0].category_name == 'car'


def test_load_detections_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_detections(str(tmp_path / 'missing.json'))

    bad = tmp_path / 'bad.json'
    bad.write_text('{"frame_idx": 0}', encoding='utf-8')
    with pytest.raises(ValueError):
        load_detections(str(bad))

    malformed = tmp_path / 'malformed.json'
    malformed.write_text('[{"detections": []}]', encoding='utf-8')
    with pytest.raises(ValueError):
        load_detections(str(malformed))


def test_run_replay_detection_skip():
    frames = [
        FrameDetections(frame_idx=i, detections=[Detection([100, 100, 50, 80], 0.9, 2, 'car')])
        for i in range(6)
    ]
    results = run_replay(frames, ByteTracker(), detection_skip=2, show_progress=False)

    assert [r.metadata['detections_used'] for r in results] == [1, 0, 1, 0, 1, 0]
    for result in results:
        assert [t.track_id for t in result.tracks] == [1]
    assert results[1].tracks[0].frames_since_update == 1
    assert results[2].tracks[0].frames_since_update == 0


def test_run_replay_rejects_invalid_skip():
    with pytest.raises(ValueError):
        run_replay([], ByteTracker(), detection_skip=0, show_progress=False)


def test_main_writes_tracks(detections_file, tmp_path):
    output = tmp_path / 'out' / 'tracks.json'
    code = main(['--detections', str(detections_file), '--output', str(output),
                 '--tracker', 'botsort', '--no-progress', '--log-level', 'WARNING'])
    assert code == 0

    frames = json.loads(output.read_text(encoding='utf-8'))
    assert [f['frame_idx'] for f in frames] == list(range(6))
    assert all([t['track_id'] for t in f['tracks']] == [1] for f in frames)

    stats = collect_id_stats(frames)
    assert stats['total_ids'] == 1
    assert stats['ids'][1]['active_frames'] == 6


def test_main_returns_error_for_missing_detections(tmp_path):
    code = main(['--detections', str(tmp_path / 'missing.json'), '--no-progress',
                 '--output', str(tmp_path / 'tracks.json')])
    assert code == 1


def test_video_reader_rejects_unreadable_video(tmp_path):
    with pytest.raises(RuntimeError):
        VideoFrameReader(str(tmp_path / 'missing.mp4'))


def test_main_returns_error_for_unreadable_video(detections_file, tmp_path):
    code = main(['--detections', str(detections_file), '--video', str(tmp_path / 'missing.mp4'),
                 '--tracker', 'botsort', '--no-progress', '--output', str(tmp_path / 'tracks.json')])
    assert code == 1
    assert not (tmp_path / 'tracks.json').exists()


# --- ID 분석 ---

def test_collect_id_stats():
    frames = [
        {'frame_idx': 0, 'tracks': [{'track_id': 1, 'frames_since_update': 0}]},
        {'frame_idx': 1, 'tracks': [{'track_id': 1, 'frames_since_update': 1}]},
        {'frame_idx': 2, 'tracks': [{'track_id': 1, 'frames_since_update': 0},
                                    {'track_id': 2, 'frames_since_update': 0}]},
        {'frame_idx': 3, 'tracks': []},
    ]
    stats = collect_id_stats(frames)
    assert stats['total_ids'] == 2
    assert stats['ids'][1]['duration'] == 3
    assert stats['ids'][1]['active_frames'] == 2
    assert stats['ids'][1]['consistency'] == pytest.approx(2 / 3)
    assert stats['buckets']['short_term'] == [1, 2]
    assert stats['id_changes'] == 2


def test_analyze_tracking_ids_prints_report(tmp_path, capsys):
    path = tmp_path / 'tracks.json'
    path.write_text(json.dumps([{'frame_idx': 0, 'tracks': [{'track_id': 5, 'frames_since_update': 0}]}]),
                    encoding='utf-8')
    result = analyze_tracking_ids(str(path))
    assert result['total_ids'] == 1
    assert '총 사용된 트래킹 ID 수: 1' in capsys.readouterr().out
