#!/usr/bin/env python3
"""
report_model.py - Document tree for a Reporter daily export

A Day holds the snapshots (one per report, in the order written) and, for
schema v2 documents, the question definitions. Every wire field is declared
with `wire(key, kind)`; report_codec walks these declarations to decode and
encode, so the dataclasses below are the schema.

Field kinds:
    'str', 'int', 'number', 'strings'   plain JSON values
    a VersionedScalar subclass          custom wire shape (report_scalars)
    a model class                       nested object
    many=True                           JSON array of the kind

Optional fields default to None, meaning the key was absent. Absent keys are
never written back, and a present-but-zero value is kept distinct from an
absent one. Keys not declared on a model are kept in `extras`.
"""

from dataclasses import dataclass, field
from datetime import date as Date
from typing import Any, Dict, List, Optional

from report_metrics import positive_average_db, positive_peak_db
from report_scalars import Connection, Impetus, Region, Timestamp, Token
from schema_version import SchemaVersion


def wire(key: str, kind: Any, many: bool = False):
    """Declare a dataclass field that maps to JSON key `key`."""
    return field(default=None, metadata={'key': key, 'kind': kind, 'many': many})


def _extras():
    return field(default_factory=dict, repr=False)


# =============================================================================
# Sensor sections
# =============================================================================

@dataclass
class Audio:
    """
    Ambient noise over one second, as raw CoreAudio decibels.

    The closer to zero the louder; -160 is silence.
    """
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    average: Optional[float] = wire('avg', 'number')
    peak: Optional[float] = wire('peak', 'number')
    extras: Dict[str, Any] = _extras()

    def positive_average_db(self, rounded: bool = False) -> float:
        return positive_average_db(self, rounded)

    def positive_peak_db(self, rounded: bool = False) -> float:
        return positive_peak_db(self, rounded)


@dataclass
class Altitude:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    adjusted_pressure: Optional[float] = wire('adjustedPressure', 'number')
    floors_ascended: Optional[int] = wire('floorsAscended', 'int')
    floors_descended: Optional[int] = wire('floorsDescended', 'int')
    gps_altitude_from_location: Optional[float] = wire('gpsAltitudeFromLocation', 'number')
    gps_raw_altitude: Optional[float] = wire('gpsRawAltitude', 'number')
    pressure: Optional[float] = wire('pressure', 'number')
    extras: Dict[str, Any] = _extras()


@dataclass
class Weather:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    relative_humidity: Optional[str] = wire('relativeHumidity', 'str')
    visibility_km: Optional[float] = wire('visibilityKM', 'number')
    temp_c: Optional[float] = wire('tempC', 'number')
    precip_today_in: Optional[float] = wire('precipTodayIn', 'number')
    wind_kph: Optional[float] = wire('windKPH', 'number')
    wind_degrees: Optional[int] = wire('windDegrees', 'int')
    latitude: Optional[float] = wire('latitude', 'number')
    station_id: Optional[str] = wire('stationID', 'str')
    visibility_mi: Optional[float] = wire('visibilityMi', 'number')
    pressure_in: Optional[float] = wire('pressureIn', 'number')
    pressure_mb: Optional[float] = wire('pressureMb', 'number')
    feels_like_f: Optional[float] = wire('feelslikeF', 'number')
    longitude: Optional[float] = wire('longitude', 'number')
    feels_like_c: Optional[float] = wire('feelslikeC', 'number')
    temp_f: Optional[float] = wire('tempF', 'number')
    precip_today_metric: Optional[float] = wire('precipTodayMetric', 'number')
    wind_gust_kph: Optional[float] = wire('windGustKPH', 'number')
    wind_direction: Optional[str] = wire('windDirection', 'str')
    dewpoint_c: Optional[float] = wire('dewpointC', 'number')
    uv: Optional[float] = wire('uv', 'number')
    weather: Optional[str] = wire('weather', 'str')
    wind_gust_mph: Optional[float] = wire('windGustMPH', 'number')
    wind_mph: Optional[float] = wire('windMPH', 'number')
    extras: Dict[str, Any] = _extras()


# =============================================================================
# Location
# =============================================================================

@dataclass
class Placemark:
    """Reverse-geocoded address; street level is often wrong, city and ZIP rarely."""
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    sub_administrative_area: Optional[str] = wire('subAdministrativeArea', 'str')
    sub_locality: Optional[str] = wire('subLocality', 'str')
    sub_thoroughfare: Optional[str] = wire('subThoroughfare', 'str')
    thoroughfare: Optional[str] = wire('thoroughfare', 'str')
    administrative_area: Optional[str] = wire('administrativeArea', 'str')
    postal_code: Optional[str] = wire('postalCode', 'str')
    region: Optional[Region] = wire('region', Region)
    country: Optional[str] = wire('country', 'str')
    locality: Optional[str] = wire('locality', 'str')
    name: Optional[str] = wire('name', 'str')
    extras: Dict[str, Any] = _extras()


@dataclass
class Location:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    speed: Optional[float] = wire('speed', 'number')
    placemark: Optional[Placemark] = wire('placemark', Placemark)
    timestamp: Optional[Timestamp] = wire('timestamp', Timestamp)
    longitude: Optional[float] = wire('longitude', 'number')
    latitude: Optional[float] = wire('latitude', 'number')
    vertical_accuracy: Optional[float] = wire('verticalAccuracy', 'number')
    course: Optional[float] = wire('course', 'number')
    altitude: Optional[float] = wire('altitude', 'number')
    horizontal_accuracy: Optional[float] = wire('horizontalAccuracy', 'number')
    extras: Dict[str, Any] = _extras()


# =============================================================================
# Photos
# =============================================================================

@dataclass
class Photo:
    """EXIF metadata of one photo taken between reports."""
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    altitude: Optional[float] = wire('altitude', 'number')
    aperture_value: Optional[float] = wire('apertureValue', 'number')
    asset_url: Optional[str] = wire('assetUrl', 'str')
    brightness_value: Optional[float] = wire('brightnessValue', 'number')
    date_time: Optional[Timestamp] = wire('dateTime', Timestamp)
    depth: Optional[int] = wire('depth', 'int')
    exposure_mode: Optional[int] = wire('exposureMode', 'int')
    exposure_program: Optional[int] = wire('exposureProgram', 'int')
    exposure_time: Optional[float] = wire('exposureTime', 'number')
    f_number: Optional[float] = wire('fNumber', 'number')
    flash: Optional[int] = wire('flash', 'int')
    focal_length: Optional[float] = wire('focalLength', 'number')
    focal_length_in_35mm: Optional[int] = wire('focalLengthIn35mm', 'int')
    iso_speed: Optional[int] = wire('isoSpeed', 'int')
    latitude: Optional[float] = wire('latitude', 'number')
    latitude_ref: Optional[str] = wire('latitudeRef', 'str')
    longitude: Optional[float] = wire('longitude', 'number')
    longitude_ref: Optional[str] = wire('longitudeRef', 'str')
    make: Optional[str] = wire('make', 'str')
    metering_mode: Optional[int] = wire('meteringMode', 'int')
    model: Optional[str] = wire('model', 'str')
    orientation: Optional[int] = wire('orientation', 'int')
    pixel_height: Optional[int] = wire('pixelHeight', 'int')
    pixel_width: Optional[int] = wire('pixelWidth', 'int')
    resolution_unit: Optional[int] = wire('resolutionUnit', 'int')
    scene_capture_type: Optional[int] = wire('sceneCaptureType', 'int')
    sensing_mode: Optional[int] = wire('sensingMode', 'int')
    shutter_speed: Optional[float] = wire('shutterSpeed', 'number')
    software: Optional[str] = wire('software', 'str')
    white_balance: Optional[int] = wire('whiteBalance', 'int')
    extras: Dict[str, Any] = _extras()


@dataclass
class PhotoSet:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    photos: Optional[List[Photo]] = wire('photos', Photo, many=True)
    extras: Dict[str, Any] = _extras()


# =============================================================================
# Survey responses
# =============================================================================

@dataclass
class TextResponse:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    text: Optional[str] = wire('text', 'str')
    extras: Dict[str, Any] = _extras()


@dataclass
class LocationResponse:
    """Answer to a location question, with the Foursquare venue picked."""
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    text: Optional[str] = wire('text', 'str')
    location: Optional[Location] = wire('location', Location)
    foursquare_venue_id: Optional[str] = wire('foursquareVenueId', 'str')
    extras: Dict[str, Any] = _extras()


@dataclass
class Response:
    """
    Answer to one survey question. Unanswered questions are not written.

    v1 documents store free text in `textResponse`; v2 uses `textResponses`.
    """
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    tokens: Optional[List[Token]] = wire('tokens', Token, many=True)
    answered_options: Optional[List[str]] = wire('answeredOptions', 'strings')
    location_response: Optional[LocationResponse] = wire('locationResponse', LocationResponse)
    question_prompt: Optional[str] = wire('questionPrompt', 'str')
    numeric_response: Optional[str] = wire('numericResponse', 'str')
    text_responses: Optional[List[TextResponse]] = wire('textResponses', TextResponse, many=True)
    text_response: Optional[str] = wire('textResponse', 'str')
    extras: Dict[str, Any] = _extras()


# =============================================================================
# Snapshot / Day
# =============================================================================

@dataclass
class Snapshot:
    """A single report."""
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    # Steps since the previous report (M7 coprocessor devices only)
    steps: Optional[int] = wire('steps', 'int')
    responses: Optional[List[Response]] = wire('responses', Response, many=True)
    # 0..1
    battery: Optional[float] = wire('battery', 'number')
    section_identifier: Optional[str] = wire('sectionIdentifier', 'str')
    audio: Optional[Audio] = wire('audio', Audio)
    background: Optional[int] = wire('background', 'int')
    date: Optional[Timestamp] = wire('date', Timestamp)
    day: Optional[Timestamp] = wire('day', Timestamp)
    location: Optional[Location] = wire('location', Location)
    photo_set: Optional[PhotoSet] = wire('photoSet', PhotoSet)
    weather: Optional[Weather] = wire('weather', Weather)
    connection: Optional[Connection] = wire('connection', Connection)
    altitude: Optional[Altitude] = wire('altitude', Altitude)
    report_impetus: Optional[Impetus] = wire('reportImpetus', Impetus)
    draft: Optional[int] = wire('draft', 'int')
    # v1 only
    dwell_status: Optional[int] = wire('dwellStatus', 'int')
    sync: Optional[int] = wire('sync', 'int')
    extras: Dict[str, Any] = _extras()


@dataclass
class Question:
    id: Optional[str] = wire('uniqueIdentifier', 'str')
    prompt: Optional[str] = wire('prompt', 'str')
    question_type: Optional[int] = wire('questionType', 'int')
    placeholder: Optional[str] = wire('placeholderString', 'str')
    extras: Dict[str, Any] = _extras()


@dataclass
class Day:
    """
    One daily export file.

    `questions` is None for v1 documents, which do not carry definitions.
    `date` and `file` are only set when the day was decoded from a ReportFile.
    """
    snapshots: List[Snapshot] = field(
        default_factory=list,
        metadata={'key': 'snapshots', 'kind': Snapshot, 'many': True, 'required': True},
    )
    questions: Optional[List[Question]] = wire('questions', Question, many=True)
    extras: Dict[str, Any] = _extras()
    schema_version: SchemaVersion = SchemaVersion.UNKNOWN
    date: Optional[Date] = None
    file: Optional[Any] = field(default=None, repr=False)

    def earliest_snapshot(self) -> Snapshot:
        if not self.snapshots:
            raise IndexError("day has no snapshots")
        return self.snapshots[0]

    def latest_snapshot(self) -> Snapshot:
        if not self.snapshots:
            raise IndexError("day has no snapshots")
        return self.snapshots[-1]
