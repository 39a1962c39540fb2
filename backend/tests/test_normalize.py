import pytest

from shadowing.normalize import normalize_for_compare, strip_transcript_annotations, tokenize_words


@pytest.mark.parametrize(
	"raw, expected",
	[
		("커피 사 주세요.", "커피 사 주세요"),
		("커피 사 주세요?", "커피 사 주세요"),
		("안녕하세요!", "안녕하세요"),
		("네, 맞아요", "네 맞아요"),
		("「안녕」 『하세요』", "안녕 하세요"),
		("커피    사\t주세요", "커피 사 주세요"),
		("  Hello, World!  ", "hello world"),
		("ｈｉ！", "ｈｉ"),
	],
)
def test_strips_punctuation_and_collapses_whitespace(raw, expected):
	assert normalize_for_compare(raw) == expected


def test_keeps_diacritics_and_composes_hangul():
	assert normalize_for_compare("café") == "café"
	# decomposed jamo compose into the syllable
	assert normalize_for_compare("\u1100\u1161") == "\uac00"
	assert normalize_for_compare("e\u0301") == "\u00e9"


@pytest.mark.parametrize("raw", ["", None, "...", "  ", "!?"])
def test_empty_or_punctuation_only(raw):
	assert normalize_for_compare(raw) == ""


@pytest.mark.parametrize("raw", ["커피 사 주세요.", "Don't  STOP!!", "a.\u0301b", "「케이크」 하나 , 주세요"])
def test_idempotent(raw):
	once = normalize_for_compare(raw)
	assert normalize_for_compare(once) == once


def test_strip_transcript_annotations():
	assert strip_transcript_annotations("(noise) 커피 [music] 주세요 {cough}") == "커피 주세요"
	assert strip_transcript_annotations("<unk>안녕하세요") == "안녕하세요"
	assert strip_transcript_annotations(None) == ""


def test_tokenize_words():
	assert tokenize_words("커피 사 주세요") == ["커피", "사", "주세요"]
	assert tokenize_words("") == []
