import pytest

from shadowing.alignment import (
	EditOp,
	Metrics,
	align_sequences,
	compare_texts,
	error_rate,
)
from shadowing.tiers import FeedbackTier, classify


def test_identical_texts_score_full_marks():
	result = compare_texts("커피 주세요", "커피 주세요")
	assert result.metrics.cer == 0
	assert result.metrics.accuracy_percent == 100
	assert result.metrics.wrong_percent == 0
	assert result.diff.wrong_units == []
	assert classify(result.metrics.accuracy_percent) is FeedbackTier.CORRECT
	assert all(u.op == EditOp.MATCH for u in result.diff.units)


def test_single_vowel_substitution():
	result = compare_texts("케이크", "캐이크")
	assert result.char_alignment.cost == 1
	assert result.metrics.cer == 0.333
	assert result.metrics.accuracy_percent == 67
	assert result.diff.wrong_units == ["케"]

	first = result.diff.units[0]
	assert first.op == EditOp.SUBSTITUTE
	assert first.to_dict() == {"unit": "케", "op": "substitute", "status": "wrong", "got": "캐"}
	assert [u.op for u in result.diff.units[1:]] == [EditOp.MATCH, EditOp.MATCH]


def test_punctuation_only_difference_is_ignored():
	result = compare_texts("커피 주세요.", "커피, 주세요!")
	assert result.metrics.accuracy_percent == 100
	assert result.diff.wrong_units == []


def test_transcript_annotations_are_ignored():
	result = compare_texts("커피 주세요", "(noise) 커피 [music] 주세요")
	assert result.metrics.accuracy_percent == 100


def test_empty_transcript_scores_zero():
	result = compare_texts("안녕하세요", "")
	assert result.metrics.cer == 1
	assert result.metrics.accuracy_percent == 0
	assert result.diff.wrong_units == ["안", "녕", "하", "세", "요"]
	assert {u.status for u in result.diff.units} == {"missing"}


def test_long_transcript_is_clamped():
	result = compare_texts("네", "네 알겠습니다 지금 바로 갈게요")
	assert result.metrics.cer == 1
	assert result.metrics.accuracy_percent == 0
	assert result.metrics.wrong_percent == 100


@pytest.mark.parametrize(
	"target, transcript, cer",
	[
		("", "", 0.0),
		("...", "", 0.0),
		("", "안녕", 1.0),
	],
)
def test_empty_target(target, transcript, cer):
	assert compare_texts(target, transcript).metrics.cer == cer


def test_insert_only_difference_has_no_wrong_units():
	result = compare_texts("커피", "커피요")
	assert result.metrics.cer == 0.5
	assert result.diff.wrong_units == []
	assert result.diff.units[-1].to_dict() == {"unit": "요", "op": "insert", "status": "extra"}


@pytest.mark.parametrize(
	"target, transcript",
	[
		("케이크 하나 주세요", "캐이크 하나 주세요"),
		("화장실이 어디예요?", "화장실 어디에요"),
		("오늘 날씨가 좋네요", "오늘 날씨 좋다"),
		("안녕하세요", "안녕"),
		("감사합니다", "감사함미다 정말"),
	],
)
def test_metric_invariants(target, transcript):
	result = compare_texts(target, transcript)
	m = result.metrics
	assert 0 <= m.cer <= 1
	assert m.accuracy_percent + m.wrong_percent == 100
	assert len(result.diff.wrong_units) <= result.char_alignment.cost
	has_wrong_ops = any(u.op in (EditOp.SUBSTITUTE, EditOp.DELETE) for u in result.diff.units)
	assert bool(result.diff.wrong_units) == has_wrong_ops
	# the diff reproduces both normalized inputs
	assert result.diff.target_text() == result.target
	assert result.diff.transcript_text() == result.transcript


def test_wrong_units_follow_target_order_without_duplicates():
	result = compare_texts("아아아", "")
	assert result.diff.wrong_units == ["아"]


def test_tie_break_prefers_substitution():
	alignment = align_sequences("ab", "ba")
	assert alignment.cost == 2
	assert [s.op for s in alignment.steps] == [EditOp.SUBSTITUTE, EditOp.SUBSTITUTE]
	assert align_sequences("ab", "ba") == alignment


def test_alignment_steps_cover_both_sequences():
	alignment = align_sequences("kitten", "sitting")
	assert alignment.cost == 3
	ref_idx = [s.ref_index for s in alignment.steps if s.ref_index is not None]
	hyp_idx = [s.hyp_index for s in alignment.steps if s.hyp_index is not None]
	assert ref_idx == list(range(6))
	assert hyp_idx == list(range(7))


def test_word_error_rate():
	result = compare_texts("커피 주세요", "커피 줘요")
	assert result.metrics.wer == 0.5
	assert result.metrics.cer == 0.333


@pytest.mark.parametrize(
	"cost, ref_len, hyp_len, expected",
	[
		(0, 0, 0, 0.0),
		(3, 0, 3, 1.0),
		(1, 4, 4, 0.25),
		(9, 3, 12, 1.0),
	],
)
def test_error_rate(cost, ref_len, hyp_len, expected):
	assert error_rate(cost, ref_len, hyp_len) == expected


@pytest.mark.parametrize(
	"cer, accuracy",
	[
		(0.0, 100),
		(0.005, 99),
		(0.104, 90),
		(0.106, 89),
		(0.5, 50),
		(1.0, 0),
	],
)
def test_accuracy_rounds_half_up(cer, accuracy):
	m = Metrics.from_rates(cer, 0.0)
	assert m.accuracy_percent == accuracy
	assert m.wrong_percent == 100 - accuracy


def test_tie_break_prefers_deletion_over_insertion():
	# the last cell ties delete against insert; the backtrace takes delete
	alignment = align_sequences("aba", "bab")
	assert alignment.cost == 2
	assert [s.op for s in alignment.steps] == [EditOp.INSERT, EditOp.MATCH, EditOp.MATCH, EditOp.DELETE]
