import re
from typing import List

# A sentence ends at ".", "?" or "!" followed by whitespace
SENTENCE_BOUNDARY = re.compile(r"(?<=[.?!])\s+")


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text.strip()) if s.strip()]


def word_count(text: str) -> int:
    return len(text.split())


def chunk_text(text: str, max_words: int) -> List[str]:
    """
    Group sentences into chunks of at most max_words words.

    Sentences are never split, so a single sentence longer than max_words
    becomes a chunk of its own. Whitespace inside a chunk is normalized to
    single spaces.
    """
    if max_words < 1:
        raise ValueError("max_words must be at least 1")

    chunks = []
    current: List[str] = []
    current_words = 0
    for sentence in split_sentences(text):
        sentence = " ".join(sentence.split())
        words = word_count(sentence)
        if current and current_words + words > max_words:
            chunks.append(" ".join(current))
            current = []
            current_words = 0
        current.append(sentence)
        current_words += words

    if current:
        chunks.append(" ".join(current))
    return chunks
