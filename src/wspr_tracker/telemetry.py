#!/usr/bin/env python3
"""
Extended Telemetry Interpreter

Compiles a user supplied extended telemetry (ET) specification into an
immutable program of filters and extractors, then evaluates it against the
packed integers carried by extended telemetry slots.

Specification grammar (case-insensitive):

    spec      := decoder ("~" decoder)*
    decoder   := [filter ("," filter)*] "_" extractor ("," extractor)*
    filter    := "t:D:M:E"    time filter, (half-minute-of-day // D) % M == E
               | "s:N"        slot filter, current slot == N
               | "et0:K"      ET0 selector: value filters 1:4:0, 4:16:K, 64:5:s
               | "D:M:E"      value filter, (raw // D) % M == E (E may be "s")
    extractor := "D:M:O:S"    channel value O + ((raw // D) % M) * S
               | "M:O:S"      D defaults to D*M of the previous extractor
                              (1 for the first one, 320 after an et0 filter)

Example:
    spec = compile_et_spec("et0:0_1101:0:1,100:0:1,101:0:10,41:0:1",
                           labels="Alt,Loc,Temp,Sats")
    values = spec.evaluate({2: raw_value}, timestamp)
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

_SPEC_CHARS = re.compile(r'^[0-9ets,:_~.-]+$')
_LABEL_CHARS = re.compile(r'^[0-9a-z ,#_]+$', re.IGNORECASE)
_UNIT_CHARS = re.compile(r'^[a-z /,]+$', re.IGNORECASE)

MAX_LABEL_LENGTH = 32
MAX_LONG_LABEL_LENGTH = 64
MAX_UNIT_LENGTH = 8
MAX_RESOLUTION = 3

# Extractor divisor following an et0 selector (1 * 4 * 16 * 5 = 320)
ET0_NEXT_DIVISOR = 320


@dataclass(frozen=True)
class TimeFilter:
    """Passes when (half-minute-of-day // divisor) % modulus == expected"""
    divisor: int
    modulus: int
    expected: int

    def matches(self, ts_seq: int, slot: int, raw_value: int) -> bool:
        return (ts_seq // self.divisor) % self.modulus == self.expected


@dataclass(frozen=True)
class SlotFilter:
    """Passes only for the given slot index"""
    slot: int

    def matches(self, ts_seq: int, slot: int, raw_value: int) -> bool:
        return slot == self.slot


@dataclass(frozen=True)
class ValueFilter:
    """
    Passes when (raw // divisor) % modulus == expected.

    An expected value of None stands for the index of the slot being decoded.
    """
    divisor: int
    modulus: int
    expected: Optional[int]

    def matches(self, ts_seq: int, slot: int, raw_value: int) -> bool:
        expected = slot if self.expected is None else self.expected
        return (raw_value // self.divisor) % self.modulus == expected


Filter = Union[TimeFilter, SlotFilter, ValueFilter]


@dataclass(frozen=True)
class Extractor:
    """Computes offset + ((raw // divisor) % modulus) * scale"""
    divisor: int
    modulus: int
    offset: float
    scale: float

    def extract(self, raw_value: int) -> float:
        return self.offset + ((raw_value // self.divisor) % self.modulus) * self.scale


@dataclass(frozen=True)
class Decoder:
    """One decoder segment: all filters must pass before extracting"""
    filters: Tuple[Filter, ...]
    extractors: Tuple[Extractor, ...]

    def matches(self, ts_seq: int, slot: int, raw_value: int) -> bool:
        return all(f.matches(ts_seq, slot, raw_value) for f in self.filters)


def half_minute_of_day(ts: datetime) -> int:
    """Index of the 2-minute WSPR cycle within the UTC day (0-719)"""
    return ts.hour * 30 + ts.minute // 2


@dataclass(frozen=True)
class ExtendedTelemetrySpec:
    """
    Compiled extended telemetry program plus optional per-channel display
    attributes (indexed by output channel position).
    """
    decoders: Tuple[Decoder, ...]
    labels: Tuple[str, ...] = ()
    long_labels: Tuple[str, ...] = ()
    units: Tuple[str, ...] = ()
    resolutions: Tuple[Optional[int], ...] = ()

    @property
    def num_channels(self) -> int:
        return sum(len(d.extractors) for d in self.decoders)

    def evaluate(self, raw_et: Mapping[int, int],
                 timestamp: datetime) -> Tuple[Optional[float], ...]:
        """
        Interpret the raw extended telemetry values of one spot.

        Each slot's value is matched against the decoders in order. The first
        matching decoder writes its channels at the current output position;
        every decoder tried without a match advances the position by its
        extractor count, so channels keep fixed positions across spots.

        Args:
            raw_et: Slot index -> packed extended telemetry value
            timestamp: Spot timestamp (for time filters)

        Returns:
            Channel values, None where no value was produced
        """
        values: List[Optional[float]] = []
        index = 0
        ts_seq = half_minute_of_day(timestamp)

        for slot in sorted(raw_et):
            raw_value = raw_et[slot]
            for decoder in self.decoders:
                if decoder.matches(ts_seq, slot, raw_value):
                    for extractor in decoder.extractors:
                        if len(values) <= index:
                            values.extend([None] * (index + 1 - len(values)))
                        values[index] = extractor.extract(raw_value)
                        index += 1
                    break
                index += len(decoder.extractors)

        return tuple(values)

    def _attribute(self, values: Sequence, index: int):
        if index < len(values) and values[index]:
            return values[index]
        return None

    def label(self, index: int) -> str:
        return self._attribute(self.labels, index) or f"ET{index}"

    def long_label(self, index: int) -> str:
        return self._attribute(self.long_labels, index) or self.label(index)

    def unit(self, index: int) -> Optional[str]:
        return self._attribute(self.units, index)

    def resolution(self, index: int) -> Optional[int]:
        if index < len(self.resolutions):
            return self.resolutions[index]
        return None

    def format_value(self, index: int, value: float, append_units: bool = True) -> str:
        """Format a channel value with its configured resolution and units"""
        resolution = self.resolution(index)
        if resolution is not None:
            text = f"{value:.{resolution}f}"
        elif float(value).is_integer():
            text = str(int(value))
        else:
            text = str(value)
        unit = self.unit(index)
        if unit and append_units:
            text += unit
        return text


def _parse_number(token: str) -> Union[int, float]:
    try:
        return int(token)
    except ValueError:
        return float(token)


def _parse_int(token: str) -> int:
    value = _parse_number(token)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Expected an integer, got {token!r}")
        value = int(value)
    return value


def _parse_filters(filters_spec: str) -> Tuple[List[Filter], bool]:
    """Parse the filter list of a decoder segment; also report et0 usage"""
    filters: List[Filter] = []
    uses_et0 = False
    if not filters_spec:
        return filters, uses_et0

    for filter_spec in filters_spec.split(','):
        parts = filter_spec.split(':')

        if len(parts) == 2 and parts[0] in ('et0', 's'):
            value = _parse_int(parts[1])
            if value < 0:
                raise ValueError(f"Negative value in filter {filter_spec!r}")
            if parts[0] == 'et0':
                filters.append(ValueFilter(1, 4, 0))
                filters.append(ValueFilter(4, 16, value))
                filters.append(ValueFilter(64, 5, None))
                uses_et0 = True
            else:
                filters.append(SlotFilter(value))

        elif len(parts) == 4 and parts[0] == 't':
            divisor, modulus, expected = (_parse_int(p) for p in parts[1:])
            if divisor <= 0 or modulus <= 1 or expected < 0:
                raise ValueError(f"Out of range time filter {filter_spec!r}")
            filters.append(TimeFilter(divisor, modulus, expected))

        elif len(parts) == 3:
            divisor = _parse_int(parts[0])
            modulus = _parse_int(parts[1])
            expected = None if parts[2] == 's' else _parse_int(parts[2])
            if divisor <= 0 or modulus <= 1 or (expected is not None and expected < 0):
                raise ValueError(f"Out of range value filter {filter_spec!r}")
            filters.append(ValueFilter(divisor, modulus, expected))

        else:
            raise ValueError(f"Invalid filter {filter_spec!r}")

    return filters, uses_et0


def _parse_extractors(extractors_spec: str, uses_et0: bool) -> List[Extractor]:
    extractors: List[Extractor] = []
    next_divisor = ET0_NEXT_DIVISOR if uses_et0 else 1

    for extractor_spec in extractors_spec.split(','):
        parts = extractor_spec.split(':')
        if len(parts) == 3:
            parts.insert(0, str(next_divisor))
        if len(parts) != 4:
            raise ValueError(f"Invalid extractor {extractor_spec!r}")

        divisor = _parse_int(parts[0])
        modulus = _parse_int(parts[1])
        offset = _parse_number(parts[2])
        scale = _parse_number(parts[3])
        if divisor < 1 or modulus < 1:
            raise ValueError(f"Out of range extractor {extractor_spec!r}")
        if scale <= 0:
            raise ValueError(f"Extractor scale must be positive: {extractor_spec!r}")

        extractors.append(Extractor(divisor, modulus, offset, scale))
        next_divisor = divisor * modulus

    return extractors


def _parse_strings(value: Optional[str], pattern: re.Pattern, max_length: int,
                   what: str) -> Tuple[str, ...]:
    if not value:
        return ()
    if not pattern.match(value):
        raise ValueError(f"Invalid characters in ET {what}: {value!r}")
    items = tuple(value.split(','))
    if any(len(item) >= max_length for item in items):
        raise ValueError(f"ET {what} must be shorter than {max_length} characters")
    return items


def _parse_resolutions(value: Optional[str]) -> Tuple[Optional[int], ...]:
    if not value:
        return ()
    resolutions: List[Optional[int]] = []
    for item in value.split(','):
        if item == '':
            resolutions.append(None)
            continue
        resolution = _parse_int(item)
        if not 0 < resolution <= MAX_RESOLUTION:
            raise ValueError(f"ET resolution out of range: {item!r}")
        resolutions.append(resolution)
    return tuple(resolutions)


def compile_et_spec(
    spec: str,
    labels: Optional[str] = None,
    long_labels: Optional[str] = None,
    units: Optional[str] = None,
    resolutions: Optional[str] = None,
) -> ExtendedTelemetrySpec:
    """
    Compile an extended telemetry specification.

    Args:
        spec: Decoder specification, e.g. "et0:0_1101:0:1,100:0:1"
        labels: Comma separated short channel labels
        long_labels: Comma separated long channel labels
        units: Comma separated channel units
        resolutions: Comma separated decimal places (1-3, empty for default)

    Returns:
        ExtendedTelemetrySpec

    Raises:
        ValueError: If any part fails the grammar, range or character checks
    """
    spec = spec.strip().lower()
    if not _SPEC_CHARS.match(spec):
        raise ValueError(f"Invalid characters in ET spec: {spec!r}")

    decoders = []
    try:
        for decoder_spec in spec.split('~'):
            segments = decoder_spec.split('_')
            if len(segments) != 2:
                raise ValueError(f"ET decoder needs one '_' separator: {decoder_spec!r}")
            filters_spec, extractors_spec = segments
            filters, uses_et0 = _parse_filters(filters_spec)
            extractors = _parse_extractors(extractors_spec, uses_et0)
            decoders.append(Decoder(tuple(filters), tuple(extractors)))
    except ValueError as e:
        raise ValueError(f"Invalid ET spec {spec!r}: {e}") from e

    compiled = ExtendedTelemetrySpec(
        decoders=tuple(decoders),
        labels=_parse_strings(labels, _LABEL_CHARS, MAX_LABEL_LENGTH, 'labels'),
        long_labels=_parse_strings(long_labels, _LABEL_CHARS, MAX_LONG_LABEL_LENGTH,
                                   'long labels'),
        units=_parse_strings(units, _UNIT_CHARS, MAX_UNIT_LENGTH, 'units'),
        resolutions=_parse_resolutions(resolutions),
    )
    logger.debug(f"Compiled ET spec with {len(decoders)} decoders, "
                 f"{compiled.num_channels} channels")
    return compiled
