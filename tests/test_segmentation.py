"""Tests for smart segmentation."""

from vidsum.models import CaptionFragment, SegmentGroup
from vidsum.segmentation import (
    INVALID_SUBTITLE_TEXT,
    count_words,
    detect_topic_change,
    smart_segmentation,
    time_based_segmentation,
    validate_segments,
)

SENTENCE = "machine learning models require training data"


def make_fragments(count, seconds_each, text=SENTENCE):
    return [
        CaptionFragment(start=i * seconds_each, end=(i + 1) * seconds_each, text=text)
        for i in range(count)
    ]


def assert_contiguous(segments):
    for current, following in zip(segments, segments[1:]):
        assert current.end <= following.start


def test_count_words():
    assert count_words("  one two\tthree\n") == 3
    assert count_words("") == 0


def test_detect_topic_change_on_transition_word():
    assert detect_topic_change(SENTENCE, "however the results differ")


def test_detect_topic_change_on_low_overlap():
    assert detect_topic_change(SENTENCE, "quantum chromodynamics describes quarks")


def test_no_topic_change_for_repeated_content():
    assert not detect_topic_change(SENTENCE * 3, SENTENCE)


def test_short_video_is_one_segment():
    fragments = make_fragments(10, 60)
    segments = smart_segmentation(fragments, 4, 15, max_words_per_segment=2000)
    assert len(segments) == 1
    assert segments[0].start == 0
    assert segments[0].end == 600
    assert segments[0].subtitle_count == 10


def test_transition_word_splits_after_min_duration():
    fragments = make_fragments(70, 20)
    fragments[40] = CaptionFragment(start=800, end=820, text="however the training data matters")
    segments = smart_segmentation(fragments, 4, 15, max_words_per_segment=2000)
    assert len(segments) == 2
    assert segments[0].end == 800
    assert segments[1].start == 800
    assert segments[0].subtitle_count + segments[1].subtitle_count == 70


def test_transition_word_before_min_duration_does_not_split():
    fragments = make_fragments(20, 10)
    fragments[5] = CaptionFragment(start=50, end=60, text="however the training data matters")
    segments = smart_segmentation(fragments, 4, 15, max_words_per_segment=2000)
    assert len(segments) == 1


def test_max_duration_forces_split():
    fragments = make_fragments(40, 60)
    segments = smart_segmentation(fragments, 4, 15, max_words_per_segment=100000)
    assert len(segments) > 1
    assert all(segment.duration <= 15 * 60 for segment in segments)
    assert_contiguous(segments)


def test_word_cap_forces_split():
    fragments = make_fragments(20, 5)
    segments = smart_segmentation(fragments, 4, 15, max_words_per_segment=30)
    assert len(segments) > 1
    assert all(count_words(segment.text) <= 30 + count_words(SENTENCE) for segment in segments)


def test_empty_fragments_with_known_duration():
    segments = smart_segmentation([], 4, 15, video_duration=930)
    assert [(s.start, s.end) for s in segments] == [(0.0, 570.0), (570.0, 930.0)]
    assert all(s.subtitle_count == 0 for s in segments)
    assert all(s.is_placeholder for s in segments)


def test_empty_fragments_with_unknown_duration():
    assert smart_segmentation([], 4, 15) == []


def test_fragments_without_text_give_single_placeholder():
    fragments = [CaptionFragment(0, 5, ""), CaptionFragment(5, 12, "  ")]
    segments = smart_segmentation(fragments, 4, 15, video_duration=300)
    assert segments == [SegmentGroup(0.0, 300, INVALID_SUBTITLE_TEXT, 0)]


def test_empty_fragments_are_skipped_in_counts():
    fragments = make_fragments(5, 10)
    fragments.insert(2, CaptionFragment(20, 20.5, ""))
    segments = smart_segmentation(fragments, 4, 15)
    assert segments[0].subtitle_count == 5


def test_segmentation_is_deterministic():
    fragments = make_fragments(70, 20)
    assert smart_segmentation(fragments, 2, 6) == smart_segmentation(fragments, 2, 6)


def test_time_based_segmentation():
    segments = time_based_segmentation(make_fragments(12, 30), 2)
    assert [(s.start, s.subtitle_count) for s in segments] == [(0, 4), (120, 4), (240, 4)]


def test_validate_segments_reports_problems():
    segments = [
        SegmentGroup(0, 100, "ok", 3),
        SegmentGroup(90, 80, "", 0),
    ]
    problems = validate_segments(segments)
    assert any("end time" in p for p in problems)
    assert any("text is empty" in p for p in problems)
    assert any("overlap" in p for p in problems)
    assert validate_segments([SegmentGroup(0, 10, "fine", 1)]) == []
