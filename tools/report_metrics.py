#!/usr/bin/env python3
"""
report_metrics.py - Derived values computed from raw Reporter readings

Audio levels are stored as the raw CoreAudio output, -160 dB (silence) to
0 dB (clipping). The app displays them on a positive scale using a rough
approximation from its author:

    (x + 65) * 2

where x is the raw reading. The same conversion is offered here for the
average and the peak of a snapshot's audio section.
"""

import math

from report_errors import MissingRequiredField


DB_OFFSET = 65
DB_SCALE = 2


def round_plus(value: float, places: int) -> float:
    """Round half away from zero to `places` decimals."""
    shift = math.pow(10, places)
    magnitude = math.floor(abs(value) * shift + 0.5) / shift
    return math.copysign(magnitude, value)


def to_positive_db(raw: float, rounded: bool = False) -> float:
    value = (float(raw) + DB_OFFSET) * DB_SCALE
    if rounded:
        return round_plus(value, 2)
    return value


def positive_average_db(audio, rounded: bool = False) -> float:
    """
    Positive-scale average decibels for an audio section.

    Raises:
        MissingRequiredField: the section has no average reading
    """
    if audio is None or audio.average is None:
        raise MissingRequiredField("audio average ('avg') is not present")
    return to_positive_db(audio.average, rounded)


def positive_peak_db(audio, rounded: bool = False) -> float:
    """Positive-scale peak decibels for an audio section."""
    if audio is None or audio.peak is None:
        raise MissingRequiredField("audio peak ('peak') is not present")
    return to_positive_db(audio.peak, rounded)
