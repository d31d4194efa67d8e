#!/usr/bin/env python3
"""
Analysis Tools - Character, word and line counts plus readability scoring
"""

import math
import re
from typing import Any, Dict, List

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import require_non_empty_text

_WHITESPACE = re.compile(r"\s")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_SENTENCE_END = re.compile(r"[.!?]+")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_VOWEL_GROUP = re.compile(r"[aeiouy]+")

# (minimum Flesch reading ease, label), highest first
READING_LEVELS = [
    (90, "Very Easy (5th grade)"),
    (80, "Easy (6th grade)"),
    (70, "Fairly Easy (7th grade)"),
    (60, "Standard (8th-9th grade)"),
    (50, "Fairly Difficult (10th-12th grade)"),
    (30, "Difficult (College)"),
]
HARDEST_READING_LEVEL = "Very Difficult (College Graduate)"


class AnalysisInput(ToolInput):
    text: str = Field(description="The text to analyze")


def _words(text: str) -> List[str]:
    return text.split()


def round_one_decimal(value: float) -> float:
    """Round half up to one decimal place"""
    return math.floor(value * 10 + 0.5) / 10


def count_syllables(word: str) -> int:
    """
    Rough syllable count for an English word.

    Short words count as one syllable, a trailing silent "e" is dropped and
    each remaining vowel group counts once.
    """
    word = _NON_ALPHANUMERIC.sub("", word.lower())
    if len(word) <= 3:
        return 1

    if word.endswith("e"):
        word = word[:-1]

    groups = _VOWEL_GROUP.findall(word)
    return len(groups) if groups else 1


def get_reading_level(score: float) -> str:
    """Map a Flesch reading ease score to a named level"""
    for minimum, label in READING_LEVELS:
        if score >= minimum:
            return label
    return HARDEST_READING_LEVEL


def count_characters(args: AnalysisInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {
        "total_characters": len(args.text),
        "characters_without_spaces": len(_WHITESPACE.sub("", args.text)),
    }


def count_words(args: AnalysisInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"word_count": len(_words(args.text))}


def count_lines(args: AnalysisInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"line_count": len(_LINE_BREAK.split(args.text))}


def analyze_readability(args: AnalysisInput) -> Dict[str, Any]:
    """Sentence, word and syllable counts with Flesch-Kincaid scores"""
    require_non_empty_text(args.text, "Text")

    sentences = [s for s in _SENTENCE_END.split(args.text) if s.strip()]
    words = _words(args.text)
    sentence_count = len(sentences)
    word_count = len(words)
    syllable_count = sum(count_syllables(word) for word in words)

    grade = 0.0
    ease = 0.0
    if word_count > 0 and sentence_count > 0:
        words_per_sentence = word_count / sentence_count
        syllables_per_word = syllable_count / word_count
        grade = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59
        ease = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word

    return {
        "sentence_count": sentence_count,
        "word_count": word_count,
        "syllable_count": syllable_count,
        "flesch_kincaid_grade": round_one_decimal(grade),
        "flesch_reading_ease": round_one_decimal(ease),
        "reading_level": get_reading_level(ease),
    }


def register_analysis_tools(catalog: ToolCatalog) -> None:
    """Register the counting and readability tools"""
    catalog.add("count_characters", "Count characters in text", AnalysisInput, count_characters)
    catalog.add("count_words", "Count words in text", AnalysisInput, count_words)
    catalog.add("count_lines", "Count lines in text", AnalysisInput, count_lines)
    catalog.add("analyze_readability", "Calculate readability metrics", AnalysisInput, analyze_readability)
