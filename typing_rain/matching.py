"""
Text comparison across the supported languages.

Every language compares on NFC-composed, case-folded, trimmed text. Vietnamese
in ``lenient`` tone mode additionally folds ``đ`` to ``d`` and drops every
combining mark, so ``người`` and ``nguoi`` compare equal.
"""

import unicodedata
from dataclasses import dataclass

LANGS = ("ko", "en", "vi", "th")
TONE_MODES = ("strict", "lenient")


def _fold(text):
    return text.casefold().strip()


def normalize_common(text):
    return _fold(unicodedata.normalize("NFC", str(text or "")))


def strip_vi_diacritics(text):
    text = (text or "").replace("đ", "d").replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))


def normalize_for_lang(text, lang, tone_mode="strict"):
    if lang == "vi" and tone_mode == "lenient":
        return _fold(strip_vi_diacritics(text))
    return normalize_common(text)


def equals_vi(a, b, tone_mode):
    return normalize_for_lang(a, "vi", tone_mode) == normalize_for_lang(b, "vi", tone_mode)


def starts_with_for_lang(target, text, lang, tone_mode="strict"):
    return normalize_for_lang(target, lang, tone_mode).startswith(
        normalize_for_lang(text, lang, tone_mode)
    )


def full_equal_for_lang(a, b, lang, tone_mode="strict"):
    if lang == "vi":
        return equals_vi(a, b, tone_mode)
    return normalize_common(a) == normalize_common(b)


@dataclass(frozen=True)
class CrossMatch:
    ok: bool
    is_cross: bool = False
    lang: str = None
    variant_text: str = None


NO_MATCH = CrossMatch(ok=False)


def find_cross_prefix_match(texts, text, display_lang, tone_mode="strict"):
    """Prefix-match ``text`` against a word's variants.

    The display language is tried first; the others follow in ``LANGS`` order
    and the first hit is reported as a cross-language match.
    """
    shown = texts.get(display_lang)
    if shown and starts_with_for_lang(shown, text, display_lang, tone_mode):
        return CrossMatch(ok=True, is_cross=False, lang=display_lang, variant_text=shown)

    for lang in LANGS:
        if lang == display_lang:
            continue
        variant = texts.get(lang)
        if variant and starts_with_for_lang(variant, text, lang, tone_mode):
            return CrossMatch(ok=True, is_cross=True, lang=lang, variant_text=variant)
    return NO_MATCH


def any_full_equal(texts, text, tone_mode="strict"):
    for lang in LANGS:
        variant = texts.get(lang)
        if variant and full_equal_for_lang(variant, text, lang, tone_mode):
            return True
    return False
