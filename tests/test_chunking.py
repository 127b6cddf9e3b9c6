import pytest

from src.core.chunking import chunk_text, split_sentences


def test_all_sentences_fit_in_one_chunk():
    assert chunk_text("A. B. C.", max_words=10) == ["A. B. C."]


def test_one_word_limit_gives_one_sentence_per_chunk():
    assert chunk_text("A. B. C.", max_words=1) == ["A.", "B.", "C."]


def test_question_and_exclamation_marks_are_boundaries():
    assert split_sentences("Open today? Yes! Until five.") == ["Open today?", "Yes!", "Until five."]


def test_sentences_accumulate_until_limit():
    text = "We open at nine. We close at five. Parking is free downstairs."
    assert chunk_text(text, max_words=8) == [
        "We open at nine. We close at five.",
        "Parking is free downstairs.",
    ]


def test_long_sentence_is_kept_whole():
    text = "Short one. This sentence has far more words than the limit allows. End."
    chunks = chunk_text(text, max_words=3)
    assert chunks == ["Short one.", "This sentence has far more words than the limit allows.", "End."]


def test_every_sentence_appears_exactly_once():
    text = "One. Two two. Three three three.\n\nFour four four four? Five!"
    chunks = chunk_text(text, max_words=4)
    assert all(chunks)
    assert " ".join(chunks) == " ".join(text.split())


def test_decimal_points_do_not_split():
    assert chunk_text("Plans start at $4.99 per month. Ask us.", max_words=100) == [
        "Plans start at $4.99 per month. Ask us."
    ]


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_text_has_no_chunks(text):
    assert chunk_text(text, max_words=5) == []


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        chunk_text("A.", max_words=0)
