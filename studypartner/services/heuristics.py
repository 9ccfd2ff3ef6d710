"""
Deterministic, network-free study material generators.

These are the last stage of every generation chain, so each function returns
a non-empty result for any non-blank text.
"""
from __future__ import annotations

import re
from typing import List

SENTENCE_BREAK = re.compile(r"[.!?]")

SUMMARY_MIN_SENTENCE = 15
FLASHCARD_MIN_SENTENCE = 20
QUIZ_MIN_SENTENCE = 25

SUMMARY_SENTENCES = 7
SUMMARY_EXTRA_SENTENCES = 3
SUMMARY_MIN_LENGTH = 100
SUMMARY_FALLBACK_WORDS = 20

MAX_FLASHCARDS = 8
MAX_QUIZ_QUESTIONS = 6
QUESTION_PREFIX = 40
CHUNK_PREFIX = 30
CHUNK_COUNT = 5

FLASHCARD_TEMPLATES = [
    "What is the main concept discussed in: {}?",
    "Explain the key idea: {}?",
    "What does this statement mean: {}?",
    "How does this relate to the topic: {}?",
    "What is the significance of: {}?",
    "What are the implications of: {}?",
    "What can we learn from: {}?",
    "What is the purpose of: {}?",
]

CHUNK_TEMPLATES = [
    "What is the main topic in this section: {}?",
    "What concept is explained here: {}?",
    "What information is provided about: {}?",
    "What does this part discuss: {}?",
    "What is the focus of this section: {}?",
]

# (question, stock options used when the sentence is too short to rework)
QUIZ_TEMPLATES = [
    ("What is the main concept discussed in: {}?",
     ["The correct concept", "A related but different concept", "An unrelated concept", "A completely opposite concept"]),
    ("Which statement best describes: {}?",
     ["The accurate description", "A partially correct description", "An incorrect description", "An irrelevant description"]),
    ("What does this statement mean: {}?",
     ["The intended meaning", "A different interpretation", "A misunderstanding", "An unrelated meaning"]),
    ("How does this relate to the topic: {}?",
     ["Directly related", "Indirectly related", "Not related", "Opposite to the topic"]),
    ("What is the significance of: {}?",
     ["High significance", "Moderate significance", "Low significance", "No significance"]),
    ("What are the implications of: {}?",
     ["Positive implications", "Negative implications", "Mixed implications", "No implications"]),
]

PARTIAL_DISTRACTOR = "This statement is partially accurate but incomplete"
ABSENT_DISTRACTOR = "This statement is not mentioned in the original text"


def split_into_sentences(text: str, min_length: int) -> List[str]:
    """Split on . ! ? and keep trimmed pieces longer than min_length."""
    sentences = []
    for piece in SENTENCE_BREAK.split(text or ""):
        piece = piece.strip()
        if len(piece) > min_length:
            sentences.append(piece)
    return sentences


def _word_chunks(words: List[str], min_chunk: int) -> List[str]:
    chunk_size = max(len(words) // CHUNK_COUNT, min_chunk)
    chunks = []
    for i in range(CHUNK_COUNT):
        start = i * chunk_size
        if start >= len(words):
            break
        chunks.append(" ".join(words[start:start + chunk_size]))
    return chunks


# -------------------- SUMMARY --------------------

def summarize(text: str) -> str:
    content = (text or "").strip()
    if not content:
        return "No content available for summary."

    sentences = split_into_sentences(content, SUMMARY_MIN_SENTENCE)
    if not sentences:
        words = content.split()
        if len(words) > SUMMARY_FALLBACK_WORDS:
            return " ".join(words[:SUMMARY_FALLBACK_WORDS]) + "..."
        return content

    count = min(SUMMARY_SENTENCES, len(sentences))
    picked = sentences[:count]
    summary = ". ".join(picked) + "."

    if len(summary) < SUMMARY_MIN_LENGTH and len(sentences) > count:
        picked = sentences[:count + SUMMARY_EXTRA_SENTENCES]
        summary = ". ".join(picked) + "."
    return summary


# -------------------- FLASHCARDS --------------------

def make_flashcards(text: str) -> List[dict]:
    content = (text or "").strip()
    cards: List[dict] = []

    sentences = split_into_sentences(content, FLASHCARD_MIN_SENTENCE)
    for i, sentence in enumerate(sentences[:MAX_FLASHCARDS]):
        template = FLASHCARD_TEMPLATES[i % len(FLASHCARD_TEMPLATES)]
        cards.append({
            "question": template.format(sentence[:QUESTION_PREFIX]),
            "answer": sentence,
        })
    if cards:
        return cards

    words = content.split()
    if len(words) > 10:
        for i, chunk in enumerate(_word_chunks(words, 5)):
            template = CHUNK_TEMPLATES[i % len(CHUNK_TEMPLATES)]
            cards.append({"question": template.format(chunk[:CHUNK_PREFIX]), "answer": chunk})
        return cards

    return [{"question": "What is the main content of this note?", "answer": content}]


# -------------------- QUIZ --------------------

def _sentence_options(sentence: str, stock_options: List[str]) -> List[str]:
    words = sentence.split()
    if len(words) > 3:
        return [
            sentence,
            " ".join(words[:len(words) // 2]) + " with different context",
            PARTIAL_DISTRACTOR,
            ABSENT_DISTRACTOR,
        ]
    return [sentence] + list(stock_options[1:])


def make_quiz(text: str) -> List[dict]:
    content = (text or "").strip()
    questions: List[dict] = []

    sentences = split_into_sentences(content, QUIZ_MIN_SENTENCE)
    for i, sentence in enumerate(sentences[:MAX_QUIZ_QUESTIONS]):
        template, stock_options = QUIZ_TEMPLATES[i % len(QUIZ_TEMPLATES)]
        questions.append({
            "question": template.format(sentence[:QUESTION_PREFIX]),
            "options": _sentence_options(sentence, stock_options),
            "answer": 0,
        })
    if questions:
        return questions

    words = content.split()
    if len(words) > 15:
        for i, chunk in enumerate(_word_chunks(words, 8)):
            template = CHUNK_TEMPLATES[i % len(CHUNK_TEMPLATES)]
            questions.append({
                "question": template.format(chunk[:CHUNK_PREFIX]),
                "options": [
                    chunk,
                    f"This section discusses {words[min(i * 2, len(words) - 1)]}",
                    "This information is not present in the text",
                    "This section covers a completely different topic",
                ],
                "answer": 0,
            })
        return questions

    return [{
        "question": "What is the main topic of this note?",
        "options": [
            content,
            "This is about a different topic",
            "This is not relevant",
            "This is incorrect information",
        ],
        "answer": 0,
    }]
