"""Default rendering of validation error descriptors.

The field engine only produces structured descriptors; turning them into
text is the job of a formatter supplied through the field context. This
module provides a small built-in catalogue used when none is configured.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from fieldengine.logic.validation import ValidationErrorDescriptor

logger = logging.getLogger(__name__)

MessageFormatter = Callable[[ValidationErrorDescriptor, str], str]

KEY_PREFIX = "form.validation."

CATALOGUE: Dict[str, Dict[str, str]] = {
    "en": {
        "form.validation.blank": "This field can't be blank",
        "form.validation.tooLong": "This field is too long (maximum is {max} characters)",
        "form.validation.notANumber": "This field must be a number",
        "form.validation.notAnInteger": "This field must be an integer",
        "form.validation.greaterThanOrEqualTo": "This field must be greater than or equal to {gte}",
        "form.validation.lessThanOrEqualTo": "This field must be less than or equal to {lte}",
        "form.validation.inclusion": "{value} is not a valid value for this field",
        "form.validation.date": "{value} is not a valid date",
    },
    "de": {
        "form.validation.blank": "Dieses Feld darf nicht leer gelassen werden",
        "form.validation.tooLong": "Dieses Feld ist zu lang (maximal {max} Zeichen)",
        "form.validation.notANumber": "Dieses Feld muss eine Zahl sein",
        "form.validation.notAnInteger": "Dieses Feld muss eine ganze Zahl sein",
        "form.validation.greaterThanOrEqualTo": "Dieses Feld muss grösser oder gleich {gte} sein",
        "form.validation.lessThanOrEqualTo": "Dieses Feld muss kleiner oder gleich {lte} sein",
        "form.validation.inclusion": "{value} ist kein gültiger Wert für dieses Feld",
        "form.validation.date": "{value} ist kein gültiges Datum",
    },
}


def format_error(descriptor: ValidationErrorDescriptor, locale: str = "en") -> str:
    """Render ``descriptor`` for ``locale``, falling back to English, then the key."""
    key = f"{KEY_PREFIX}{descriptor.kind.value}"
    lang = (locale or "en").split("-")[0].lower()
    template = CATALOGUE.get(lang, {}).get(key) or CATALOGUE["en"].get(key)
    if template is None:
        return key
    params = {**descriptor.context, "value": descriptor.value}
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        logger.warning("message_format_failed key=%s params=%s", key, sorted(params))
        return template


__all__ = ["MessageFormatter", "CATALOGUE", "format_error"]
