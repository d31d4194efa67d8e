#!/usr/bin/env python3
"""
Lorem Tools - Placeholder text generation
"""

from typing import Any, Dict, List, Literal, Optional

from faker import Faker
from faker.providers.lorem.la import Provider as LatinLoremProvider
from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params

LOREM_WORDS = list(LatinLoremProvider.word_list)


class LoremInput(ToolInput):
    count: int = Field(default=5, ge=1, le=1000, description="Number of units to generate")
    units: Literal["words", "sentences", "paragraphs"] = Field(
        default="sentences", description="Type of units to generate"
    )
    paragraphLowerBound: int = Field(default=3, ge=1, le=10, description="Minimum sentences per paragraph")
    paragraphUpperBound: int = Field(default=7, ge=1, le=20, description="Maximum sentences per paragraph")
    sentenceLowerBound: int = Field(default=5, ge=1, le=20, description="Minimum words per sentence")
    sentenceUpperBound: int = Field(default=15, ge=1, le=50, description="Maximum words per sentence")
    format: Literal["plain", "html"] = Field(default="plain", description="Output format")
    seed: Optional[int] = Field(default=None, description="Seed for reproducible output (optional)")


class LoremGenerator:
    """Builds words, sentences and paragraphs from the Latin lorem word list"""

    def __init__(self, options: LoremInput):
        self.options = options
        # One Faker per call; a seed only affects this call
        self.fake = Faker()
        if options.seed is not None:
            self.fake.seed_instance(options.seed)

    def words(self, count: int) -> str:
        return " ".join(self.fake.words(nb=count, ext_word_list=LOREM_WORDS))

    def sentence(self) -> str:
        length = self.fake.random_int(self.options.sentenceLowerBound, self.options.sentenceUpperBound)
        text = self.words(length)
        return f"{text[:1].upper()}{text[1:]}."

    def sentences(self, count: int) -> str:
        return " ".join(self.sentence() for _ in range(count))

    def paragraph(self) -> str:
        length = self.fake.random_int(self.options.paragraphLowerBound, self.options.paragraphUpperBound)
        return self.sentences(length)

    def generate(self) -> str:
        count = self.options.count
        html = self.options.format == "html"

        if self.options.units == "paragraphs":
            paragraphs: List[str] = [self.paragraph() for _ in range(count)]
            if html:
                paragraphs = [f"<p>{p}</p>" for p in paragraphs]
            return "\n".join(paragraphs)

        if self.options.units == "words":
            text = self.words(count)
        else:
            text = self.sentences(count)
        return f"<p>{text}</p>" if html else text


def generate_lorem_ipsum(args: LoremInput) -> Dict[str, Any]:
    if args.paragraphUpperBound < args.paragraphLowerBound:
        raise invalid_params("paragraphUpperBound must be greater than or equal to paragraphLowerBound")

    if args.sentenceUpperBound < args.sentenceLowerBound:
        raise invalid_params("sentenceUpperBound must be greater than or equal to sentenceLowerBound")

    return {"text": LoremGenerator(args).generate()}


def register_lorem_tools(catalog: ToolCatalog) -> None:
    """Register the lorem ipsum generator"""
    catalog.add("generate_lorem_ipsum", "Generate lorem ipsum text", LoremInput, generate_lorem_ipsum)
