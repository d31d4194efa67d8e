#!/usr/bin/env python3
"""
Case Tools - camelCase, snake_case, Train-Case and the other case styles

Word boundaries inside a run come from inflection.underscore ("fooBar" ->
foo|bar, "HTMLParser" -> html|parser); anything that is neither a letter nor
an ASCII digit separates runs. Each style then re-joins the lower-cased words.
"""

from typing import Any, Callable, Dict, List, Optional, Union

import inflection
import regex
from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import require_non_empty_text

_SEPARATORS = regex.compile(r"[^\p{L}0-9]+")

_TURKIC_LANGUAGES = {"tr", "az"}

Locale = Union[List[str], str, bool, None]


class CaseInput(ToolInput):
    text: str = Field(description="The text to transform")
    delimiter: Optional[str] = Field(default=None, description="The character to use between words (optional)")
    locale: Union[List[str], str, bool, None] = Field(
        default=None, description="Locale for case conversion (optional)"
    )
    mergeAmbiguousCharacters: Optional[bool] = Field(
        default=None, description="Whether to merge ambiguous characters (optional)"
    )


def split_words(text: str, locale: Locale = None) -> List[str]:
    """Break text into lower-cased words on case changes and non-alphanumeric runs"""
    if _is_turkic(locale):
        text = text.replace("İ", "i")
    words = []
    for run in _SEPARATORS.split(text):
        if run:
            words.extend(inflection.underscore(run).split("_"))
    return words


def _is_turkic(locale: Locale) -> bool:
    if locale is None or isinstance(locale, bool):
        return False
    if isinstance(locale, list):
        if not locale:
            return False
        locale = locale[0]
    return locale.replace("_", "-").split("-")[0].lower() in _TURKIC_LANGUAGES


def upper_factory(locale: Locale) -> Callable[[str], str]:
    """Upper-casing function for a locale"""
    if _is_turkic(locale):
        return lambda s: s.replace("i", "İ").replace("ı", "I").upper()
    return str.upper


def capitalize_factory(locale: Locale) -> Callable[[str], str]:
    """Title-casing function for one lower-cased word"""
    if _is_turkic(locale):
        upper = upper_factory(locale)
        return lambda word: upper(word[:1]) + word[1:]
    return inflection.camelize


def _pascal_transform(capitalize: Callable[[str], str], merge: Optional[bool]):
    def transform(word: str, index: int) -> str:
        # A digit-led word after the first keeps a "_" so "v 2 x" does not merge into "V2X"
        if not merge and index > 0 and "0" <= word[:1] <= "9":
            return f"_{word}"
        return capitalize(word)
    return transform


def _joiner(options: CaseInput, default: str) -> str:
    return options.delimiter if options.delimiter is not None else default


def to_camel(options: CaseInput) -> str:
    transform = _pascal_transform(capitalize_factory(options.locale), options.mergeAmbiguousCharacters)
    words = split_words(options.text, options.locale)
    return _joiner(options, "").join(
        word if index == 0 else transform(word, index) for index, word in enumerate(words)
    )


def to_pascal(options: CaseInput) -> str:
    transform = _pascal_transform(capitalize_factory(options.locale), options.mergeAmbiguousCharacters)
    words = split_words(options.text, options.locale)
    return _joiner(options, "").join(transform(word, index) for index, word in enumerate(words))


def to_capital(options: CaseInput, default_delimiter: str = " ") -> str:
    capitalize = capitalize_factory(options.locale)
    words = split_words(options.text, options.locale)
    return _joiner(options, default_delimiter).join(capitalize(word) for word in words)


def to_constant(options: CaseInput) -> str:
    upper = upper_factory(options.locale)
    return _joiner(options, "_").join(upper(word) for word in split_words(options.text, options.locale))


def to_no_case(options: CaseInput, default_delimiter: str = " ") -> str:
    return _joiner(options, default_delimiter).join(split_words(options.text, options.locale))


def to_sentence(options: CaseInput) -> str:
    capitalize = capitalize_factory(options.locale)
    words = split_words(options.text, options.locale)
    return _joiner(options, " ").join(
        capitalize(word) if index == 0 else word for index, word in enumerate(words)
    )


# (tool name, style label, converter)
CASE_STYLES = [
    ("case_to_camel", "camelCase", to_camel),
    ("case_to_pascal", "PascalCase", to_pascal),
    ("case_to_snake", "snake_case", lambda o: to_no_case(o, "_")),
    ("case_to_kebab", "kebab-case", lambda o: to_no_case(o, "-")),
    ("case_to_constant", "CONSTANT_CASE", to_constant),
    ("case_to_dot", "dot.case", lambda o: to_no_case(o, ".")),
    ("case_to_no", "no case", to_no_case),
    ("case_to_pascal_snake", "Pascal_Snake_Case", lambda o: to_capital(o, "_")),
    ("case_to_path", "path/case", lambda o: to_no_case(o, "/")),
    ("case_to_sentence", "Sentence case", to_sentence),
    ("case_to_train", "Train-Case", lambda o: to_capital(o, "-")),
    ("case_to_capital", "Capital Case", to_capital),
]


def _case_handler(convert: Callable[[CaseInput], str]) -> Callable[[CaseInput], Dict[str, Any]]:
    def handler(args: CaseInput) -> Dict[str, Any]:
        require_non_empty_text(args.text, "Text")
        return {"result": convert(args)}
    return handler


def register_case_tools(catalog: ToolCatalog) -> None:
    """Register one tool per case style"""
    for name, label, convert in CASE_STYLES:
        catalog.add(name, f"Convert text to {label}", CaseInput, _case_handler(convert))
