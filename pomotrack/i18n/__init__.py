# -*- coding: utf-8 -*-
"""
Internationalization (i18n) module for Pomotrack.

Notification titles and bodies are looked up here so the timers only deal
with keys. Supports English and German with automatic system locale detection.
"""

import locale
import logging

from PySide6.QtCore import QLocale

from pomotrack.i18n.translations import TRANSLATIONS

logger = logging.getLogger(__name__)

# Supported languages
SUPPORTED_LANGUAGES = ["en", "de"]

# Current language (default to English)
_current_language = "en"


def detect_system_language() -> str:
    """
    Detect the system language and return a supported language code.

    Returns:
        'de' if German is detected, 'en' otherwise.
    """
    system_locale = locale.getlocale()[0]
    if system_locale and system_locale.lower().startswith('de'):
        return 'de'
    return 'en'


def resolve_language(preference: str) -> str:
    """Map a preference ('auto', 'en', 'de') to a supported language code"""
    if preference == 'auto':
        return detect_system_language()
    return preference if preference in SUPPORTED_LANGUAGES else 'en'


def get_language() -> str:
    """Get the current language code."""
    return _current_language


def set_language(lang: str) -> None:
    """
    Set the current language.

    Args:
        lang: Language code ('en', 'de' or 'auto')
    """
    global _current_language
    _current_language = resolve_language(lang)

    # Keep Qt's locale in line for formatted dates and numbers
    if _current_language == 'de':
        QLocale.setDefault(QLocale(QLocale.Language.German))
    else:
        QLocale.setDefault(QLocale(QLocale.Language.English))


def tr(key: str, **kwargs) -> str:
    """
    Get the translated string for the given key.

    Args:
        key: Translation key (e.g., 'notify.pomodoro.title')
        **kwargs: Format arguments for string interpolation

    Returns:
        Translated string, or the key itself if not found.
    """
    translations = TRANSLATIONS.get(_current_language, TRANSLATIONS['en'])
    text = translations.get(key, TRANSLATIONS['en'].get(key, key))

    if kwargs:
        try:
            text = text.format(**kwargs)
        except (KeyError, ValueError):
            logger.warning(f"Could not format translation '{key}' with {kwargs}")

    return text

