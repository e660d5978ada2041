"""
Bundled message catalogs per locale. Every catalog must define the same keys as the default (english) catalog.
"""
from typing import Any, Mapping

from .messages import DEFAULT_MESSAGES

_GERMAN_TYPE_TEMPLATE = "%s ist kein gültiger Wert vom Typ %s"

GERMAN_MESSAGES: Mapping[str, Any] = {
    "default": "Validierungsfehler im Feld %s",
    "required": "%s ist ein Pflichtfeld",
    "enum": "%s muss einer der folgenden Werte sein: %s",
    "whitespace": "%s darf nicht leer sein",
    "date": {
        "format": "%s: Datum %s entspricht nicht dem Format %s",
        "parse": "%s: Datum konnte nicht gelesen werden, %s ist ungültig",
        "invalid": "%s: Datum %s ist ungültig",
    },
    "types": {type_name: _GERMAN_TYPE_TEMPLATE for type_name in DEFAULT_MESSAGES["types"]},
    "string": {
        "len": "%s muss genau %s Zeichen lang sein",
        "min": "%s muss mindestens %s Zeichen lang sein",
        "max": "%s darf höchstens %s Zeichen lang sein",
        "range": "%s muss zwischen %s und %s Zeichen lang sein",
    },
    "number": {
        "len": "%s muss gleich %s sein",
        "min": "%s darf nicht kleiner als %s sein",
        "max": "%s darf nicht größer als %s sein",
        "range": "%s muss zwischen %s und %s liegen",
    },
    "array": {
        "len": "%s muss genau %s Einträge haben",
        "min": "%s muss mindestens %s Einträge haben",
        "max": "%s darf höchstens %s Einträge haben",
        "range": "%s muss zwischen %s und %s Einträge haben",
    },
    "pattern": {
        "mismatch": "%s: Wert %s entspricht nicht dem Muster %s",
    },
}

LOCALE_MESSAGES: Mapping[str, Mapping[str, Any]] = {
    "en": DEFAULT_MESSAGES,
    "de": GERMAN_MESSAGES,
}
