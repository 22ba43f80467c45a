"""
ByteTracker 동작 테스트 (ID 유지, 복구, 제거, 카테고리 분리)
"""

import numpy as np
import pytest

from sentinel.tracking import BoTSORT, ByteTracker, ByteTrackerConfig, TrackIdAllocator
from sentinel.utils.data_structure import Detection, FrameDetections, TrackerConfig


def car(bbox, score=0.9):
    return Detection(bbox=list(bbox), score=score, category_id=2, category_name='car')


def person(bbox, score=0.9):
    return Detection(bbox=list(bbox), score=score, category_id=0, category_name='person')


def test_concrete_scenario_blends_toward_detection():
    tracker = ByteTracker()
    first = tracker.update([car([100, 100, 50, 80])])
    assert len(first) == 1
    track_id = first[0].track_id

    second = tracker.update([car([105, 102, 52, 78])])
    assert len(second) == 1
    snapshot = second[0]
    assert snapshot.track_id == track_id
    assert snapshot.frames_since_update == 0
    assert snapshot.center[0] == pytest.approx(128.6)
    assert snapshot.bbox[3] == pytest.approx(78.8)


def test_identity_stable_on_linear_trajectory():
    tracker = ByteTracker()
    ids = set()
    for frame in range(50):
        output = tracker.update([car([100 + 2 * frame, 100 + frame, 50, 80])])
        assert len(output) == 1
        ids.add(output[0].track_id)
    assert ids == {1}


def test_recovery_through_low_confidence_frames():
    tracker = ByteTracker()
    for _ in range(3):
        tracker.update([car([100, 100, 50, 80], 0.9)])

    for _ in range(3):
        output = tracker.update([car([101, 100, 50, 80], 0.3)])
        assert [t.track_id for t in output] == [1]
        assert output[0].frames_since_update == 0
        assert output[0].score == pytest.approx(0.3)

    output = tracker.update([car([102, 100, 50, 80], 0.9)])
    assert [t.track_id for t in output] == [1]
    assert tracker.id_allocator.issued == 1


def test_low_confidence_detections_never_create_tracks():
    tracker = ByteTracker()
    for _ in range(5):
        assert tracker.update([car([100, 100, 50, 80], 0.3)]) == []
    assert tracker.id_allocator.issued == 0


def test_detections_below_low_thresh_are_ignored():
    tracker = ByteTracker()
    tracker.update([car([100, 100, 50, 80], 0.9)])
    output = tracker.update([car([100, 100, 50, 80], 0.05)])
    assert output[0].frames_since_update == 1


def test_eviction_after_track_buffer():
    tracker = ByteTracker(ByteTrackerConfig(track_buffer=5))
    tracker.update([car([100, 100, 50, 80])])

    for missed in range(1, 5):
        output = tracker.update([])
        assert [t.track_id for t in output] == [1]
        assert output[0].frames_since_update == missed
        assert output[0].state == 'lost'

    for _ in range(2):
        assert tracker.update([]) == []
    assert len(tracker.track_manager) == 0

    output = tracker.update([car([100, 100, 50, 80])])
    assert [t.track_id for t in output] == [2]


def test_predict_only_cycles_keep_ids_and_extrapolate():
    tracker = ByteTracker(ByteTrackerConfig(velocity_weight=0.5))
    for frame in range(10):
        output = tracker.update([car([100 + 5 * frame, 100, 50, 80])])
    last_cx = output[0].center[0]

    output = tracker.update([])
    assert [t.track_id for t in output] == [1]
    assert output[0].center[0] > last_cx


def test_category_non_interference():
    tracker = ByteTracker()
    first = tracker.update([car([100, 100, 50, 80]), person([102, 100, 50, 80])])
    assert [t.track_id for t in first] == [1, 2]

    # 사람 검출이 차량 트랙과 완전히 겹쳐도 차량 트랙에 붙지 않음
    second = tracker.update([person([100, 100, 50, 80])])
    by_id = {t.track_id: t for t in second}
    assert by_id[2].frames_since_update == 0
    assert by_id[2].category_name == 'person'
    assert by_id[1].frames_since_update == 1
    assert by_id[1].category_name == 'car'


def test_different_category_spawns_new_track():
    tracker = ByteTracker()
    tracker.update([car([100, 100, 50, 80])])
    output = tracker.update([person([100, 100, 50, 80])])
    assert sorted(t.track_id for t in output) == [1, 2]


def test_min_hits_gates_emission():
    tracker = ByteTracker(ByteTrackerConfig(min_hits=3))
    assert tracker.update([car([100, 100, 50, 80])]) == []
    assert tracker.update([car([100, 100, 50, 80])]) == []
    output = tracker.update([car([100, 100, 50, 80])])
    assert [t.track_id for t in output] == [1]
    assert output[0].hits == 3


def test_min_hits_counts_consecutive_matches_only():
    tracker = ByteTracker(ByteTrackerConfig(min_hits=2))
    assert tracker.update([car([100, 100, 50, 80])]) == []
    assert tracker.update([]) == []
    # 미매칭 이후 첫 매칭은 연속 히트 1
    assert tracker.update([car([100, 100, 50, 80])]) == []
    output = tracker.update([car([100, 100, 50, 80])])
    assert [t.track_id for t in output] == [1]


def test_degenerate_detections_are_dropped():
    tracker = ByteTracker(ByteTrackerConfig(min_box_area=10.0))
    output = tracker.update([
        car([0, 0, 0, 10]),
        car([0, 0, -5, 10]),
        car([np.nan, 0, 10, 10]),
        car([0, 0, 10, np.inf]),
        Detection([0, 0, 10, 10], float('nan')),
        car([0, 0, 2, 2]),
        {'bbox': [200, 200, 20, 20], 'score': 0.9, 'class_id': 2, 'class_name': 'car'},
    ])
    assert len(output) == 1
    assert output[0].category_name == 'car'
    assert output[0].bbox == pytest.approx([200, 200, 20, 20])


def test_fuzzed_frames_never_emit_duplicate_ids():
    rng = np.random.default_rng(42)
    tracker = ByteTracker()
    for _ in range(100):
        n = int(rng.integers(0, 10))
        detections = [
            Detection(
                bbox=[float(rng.uniform(0, 400)), float(rng.uniform(0, 400)),
                      float(rng.uniform(5, 80)), float(rng.uniform(5, 80))],
                score=float(rng.uniform(0, 1)),
                category_id=int(rng.integers(0, 3))
            )
            for _ in range(n)
        ]
        output = tracker.update(detections)
        ids = [t.track_id for t in output]
        assert len(ids) == len(set(ids))
        matched = [t for t in output if t.frames_since_update == 0]
        assert len(matched) <= n
        for t in output:
            assert np.all(np.isfinite(t.bbox))


def test_id_allocator_isolation_and_sharing():
    a, b = ByteTracker(), ByteTracker()
    assert a.update([car([0, 0, 10, 10])])[0].track_id == 1
    assert b.update([car([0, 0, 10, 10])])[0].track_id == 1

    shared = TrackIdAllocator()
    c = ByteTracker(id_allocator=shared)
    d = BoTSORT(id_allocator=shared)
    assert c.update([car([0, 0, 10, 10])])[0].track_id == 1
    assert d.update([car([0, 0, 10, 10])])[0].track_id == 2


def test_reset_keeps_ids_unique():
    tracker = ByteTracker()
    tracker.update([car([0, 0, 10, 10])])
    tracker.reset()
    assert tracker.frame_id == 0
    assert tracker.update([car([0, 0, 10, 10])])[0].track_id == 2


def test_config_is_read_on_every_update():
    tracker = ByteTracker()
    tracker.update([car([100, 100, 50, 80])])
    tracker.set_thresholds(track_buffer=1)
    assert tracker.update([]) == []


def test_set_thresholds_validates_and_rolls_back():
    tracker = ByteTracker()
    with pytest.raises(ValueError):
        tracker.set_thresholds(high_thresh=0.05)
    assert tracker.config.high_thresh == 0.5

    tracker.set_thresholds(high_thresh=0.7, match_thresh=0.3)
    assert tracker.config.high_thresh == 0.7
    assert tracker.config.match_thresh == 0.3


def test_invalid_config_leaves_tracks_untouched():
    tracker = ByteTracker()
    tracker.update([car([100, 100, 50, 80])])
    track = tracker.track_manager.tracks[0]
    mean_before = track.mean.copy()

    # 실행 중 직접 대입된 잘못된 값은 예측 전에 거부
    tracker.config.match_thresh = 1.5
    with pytest.raises(ValueError):
        tracker.update([car([100, 100, 50, 80])])
    assert tracker.frame_id == 1
    assert track.time_since_update == 0
    assert track.age == 0
    np.testing.assert_array_equal(track.mean, mean_before)

    tracker.config.match_thresh = 0.25
    output = tracker.update([car([100, 100, 50, 80])])
    assert [t.track_id for t in output] == [1]
    assert output[0].frames_since_update == 0
    assert tracker.frame_id == 2


@pytest.mark.parametrize('value', [float('inf'), float('nan'), 2.5, '30'])
def test_set_thresholds_rejects_bad_track_buffer(value):
    tracker = ByteTracker()
    with pytest.raises(ValueError):
        tracker.set_thresholds(track_buffer=value)
    assert tracker.config.track_buffer == 30

    tracker.update([car([100, 100, 50, 80])])
    for _ in range(30):
        tracker.update([])
    assert len(tracker.track_manager) == 0


@pytest.mark.parametrize('kwargs', [
    {'track_buffer': float('inf')},
    {'min_hits': float('nan')},
    {'high_thresh': 1.5},
    {'low_thresh': 0.6},
    {'match_thresh': 0.0},
    {'second_match_relax': 1.2},
    {'track_buffer': 0},
    {'min_hits': 0},
    {'motion_model': 'particle'},
    {'appearance_weight': -0.1},
])
def test_config_range_validation(kwargs):
    with pytest.raises(ValueError):
        ByteTrackerConfig(**kwargs)


def test_config_from_dict_ignores_unknown_keys():
    config = ByteTrackerConfig.from_dict({'track_buffer': 12, 'channel_order': 'rgb'})
    assert config.track_buffer == 12
    assert isinstance(config, TrackerConfig)


def test_kalman_motion_model_tracks_scenario():
    tracker = ByteTracker({'motion_model': 'kalman'})
    tracker.update([car([100, 100, 50, 80])])
    output = tracker.update([car([105, 102, 52, 78])])
    assert output[0].track_id == 1
    assert 125 < output[0].center[0] < 131


def test_track_sequence_and_statistics():
    frames = [FrameDetections(frame_idx=i, detections=[car([100 + i, 100, 50, 80])]) for i in range(5)]
    tracker = ByteTracker()
    results = tracker.track_sequence(frames)
    assert [r.frame_idx for r in results] == list(range(5))
    assert all(r.get_track_by_id(1) is not None for r in results)

    info = tracker.get_tracker_info()
    assert info['statistics']['frames_processed'] == 5
    assert info['statistics']['total_tracks'] == 1
    assert info['statistics']['active_tracks'] == 1
