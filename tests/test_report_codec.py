"""
Tests for document decoding/encoding (report_codec.py) and the Day tree.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from report_codec import (
    ReportCodec, decode_document, decode_file, encode_document, to_wire,
)
from report_errors import (
    DecodeError, InvalidDocument, MalformedPhrase, MalformedRegion,
    MalformedTimestamp, SchemaConflict, UnknownCodeWarning, UnresolvedSchemaVersion,
)
from report_files import ReportFile
from report_model import Audio, Day, Response, Snapshot
from report_scalars import Token
from schema_version import SchemaVersion


def _doc(**snapshot):
    return json.dumps({'snapshots': [snapshot]})


# =============================================================================
# Schema v1
# =============================================================================

class TestDecodeVersionOne:
    """Tests for a schema v1 document."""

    @pytest.fixture
    def day(self, v1_bytes):
        return decode_document(v1_bytes)

    def test_version_inferred(self, day):
        """Test numeric dates make the document v1."""
        assert day.schema_version == SchemaVersion.V1

    def test_structure(self, day):
        """Test the v1 document tree is populated."""
        assert len(day.snapshots) == 2
        assert day.questions is None

        first = day.snapshots[0]
        assert first.battery == 0.87
        assert first.steps == 312
        assert first.dwell_status == 0
        assert first.sync == 0
        assert first.id is None

    def test_scalars(self, day):
        """Test connection, impetus and region decode in v1."""
        first = day.snapshots[0]
        assert first.date.seconds == 411474512.481322
        assert first.connection.method == 'Wi-Fi'
        assert first.report_impetus.description == 'Report button tapped'
        assert first.location.placemark.region.identifier == 'Home'
        assert first.location.placemark.region.radius == pytest.approx(100.0)
        assert first.photo_set.photos[0].date_time.seconds == 411474100.5

    def test_responses(self, day):
        """Test v1 responses decode string tokens."""
        responses = day.snapshots[0].responses
        assert responses[0].location_response.foursquare_venue_id == '4b058754f964a520cf8f22e3'
        assert responses[1].tokens == [Token('Working'), Token('Drinking coffee')]
        assert responses[2].answered_options == ['Yes']
        assert responses[3].numeric_response == '2'
        assert responses[4].text_response == 'Date math is hard'
        assert responses[4].text_responses is None

    def test_roundtrip(self, day, v1_json):
        """Test the v1 document re-encodes unchanged."""
        assert json.loads(encode_document(day)) == v1_json


# =============================================================================
# Schema v2
# =============================================================================

class TestDecodeVersionTwo:
    """Tests for a schema v2 document."""

    @pytest.fixture
    def day(self, v2_bytes):
        return decode_document(v2_bytes)

    def test_version_inferred(self, day):
        """Test ISO dates make the document v2."""
        assert day.schema_version == SchemaVersion.V2

    def test_questions(self, day):
        """Test questions decode in v2."""
        assert [q.prompt for q in day.questions] == [
            'What are you doing?', 'Are you working?', 'What did you learn today?',
        ]
        assert day.questions[1].placeholder is None
        assert day.questions[2].question_type == 3

    def test_v1_only_fields_absent(self, day):
        """Test keys only v1 writes stay absent in v2."""
        for snapshot in day.snapshots:
            assert snapshot.dwell_status is None
            assert snapshot.sync is None

    def test_tokens(self, day):
        """Test v2 token objects keep their identifiers."""
        tokens = day.latest_snapshot().responses[0].tokens
        assert [t.text for t in tokens] == ['Alice', 'Bob']
        assert tokens[0].id == '793E4052-DDDD-4DDD-8DDD-DDDDDDDDDDDD'

    def test_timestamp_keeps_offset(self, day):
        """Test v2 dates keep their UTC offset."""
        assert str(day.earliest_snapshot().date) == '2015-10-23T08:30:12-0700'

    def test_roundtrip(self, day, v2_json):
        """Test the v2 document re-encodes unchanged."""
        assert json.loads(encode_document(day)) == v2_json

    def test_absent_fields_not_emitted(self, day):
        """Test absent fields are not written back."""
        wire = to_wire(day)
        for snapshot in wire['snapshots']:
            assert 'dwellStatus' not in snapshot
            assert 'sync' not in snapshot
        assert None not in wire['snapshots'][0].values()


# =============================================================================
# Converting between versions
# =============================================================================

class TestConversion:
    """Tests for encoding a day in a version other than the one it was read in."""

    def test_v1_to_v2(self, v1_bytes):
        """Test converting a v1 document to v2 shapes."""
        day = decode_document(v1_bytes)
        wire = to_wire(day, SchemaVersion.V2)
        snapshot = wire['snapshots'][0]
        assert isinstance(snapshot['date'], str)
        assert snapshot['responses'][1]['tokens'] == [{'text': 'Working'}, {'text': 'Drinking coffee'}]
        assert day.schema_version == SchemaVersion.V1

    def test_v2_to_v1(self, v2_bytes):
        """Test converting a v2 document to v1 shapes."""
        day = decode_document(v2_bytes)
        wire = to_wire(day, SchemaVersion.V1)
        snapshot = wire['snapshots'][1]
        assert isinstance(snapshot['date'], float)
        assert snapshot['responses'][0]['tokens'] == ['Alice', 'Bob']

    def test_converted_document_decodes_as_target(self, v1_bytes):
        """Test a converted document decodes as the target version."""
        converted = encode_document(decode_document(v1_bytes), SchemaVersion.V2)
        assert decode_document(converted).schema_version == SchemaVersion.V2


# =============================================================================
# Absence and unknown versions
# =============================================================================

class TestAbsence:
    """Tests that absent fields stay absent and present zeros stay present."""

    def test_minimal_document(self):
        """Test a document with only snapshots decodes."""
        day = decode_document('{"snapshots":[{"battery":0.9}]}')
        assert day.schema_version == SchemaVersion.UNKNOWN
        assert day.snapshots[0].battery == 0.9
        assert day.snapshots[0].audio is None
        assert json.loads(encode_document(day)) == {'snapshots': [{'battery': 0.9}]}

    def test_zero_is_not_absent(self):
        """Test zero values are kept, not treated as absent."""
        day = decode_document(_doc(dwellStatus=0, steps=0))
        assert day.snapshots[0].dwell_status == 0
        assert json.loads(encode_document(day)) == {'snapshots': [{'dwellStatus': 0, 'steps': 0}]}

    def test_null_is_absent(self):
        """Test null values are treated as absent."""
        day = decode_document('{"snapshots":[{"steps":null,"battery":0.5}]}')
        assert day.snapshots[0].steps is None
        assert json.loads(encode_document(day)) == {'snapshots': [{'battery': 0.5}]}

    def test_empty_questions_kept(self):
        """Test an empty questions list is kept."""
        day = decode_document('{"snapshots":[],"questions":[]}')
        assert day.questions == []
        assert json.loads(encode_document(day)) == {'snapshots': [], 'questions': []}

    def test_unknown_keys_kept(self):
        """Test unknown keys survive a roundtrip."""
        raw = {'snapshots': [{'battery': 0.5, 'newSensor': {'lux': 120}}], 'exportedBy': 'app'}
        day = decode_document(json.dumps(raw))
        assert day.snapshots[0].extras == {'newSensor': {'lux': 120}}
        assert day.extras == {'exportedBy': 'app'}
        assert json.loads(encode_document(day)) == raw

    def test_unknown_version_defaults_to_v2(self):
        """Test a document without versioned fields encodes as v2."""
        day = Day(snapshots=[Snapshot(responses=None, audio=Audio(average=-40.0))])
        assert json.loads(encode_document(day)) == {'snapshots': [{'audio': {'avg': -40.0}}]}

    def test_strict_codec_refuses_unknown_version(self):
        """Test strict codec refuses to guess the version."""
        day = decode_document('{"snapshots":[{"battery":0.9}]}')
        with pytest.raises(UnresolvedSchemaVersion):
            ReportCodec(strict=True).encode(day)

    def test_strict_codec_accepts_explicit_version(self):
        """Test strict codec encodes when a version is given."""
        day = decode_document('{"snapshots":[{"battery":0.9}]}')
        assert ReportCodec(strict=True).encode(day, SchemaVersion.V1) == b'{"snapshots":[{"battery":0.9}]}'

    def test_codec_default_version(self):
        """Test the codec's configured default version."""
        day = Day(snapshots=[Snapshot(responses=[Response(tokens=[Token('Tea')])])])
        wire = ReportCodec(default_version=SchemaVersion.V1).to_wire(day)
        assert wire['snapshots'][0]['responses'][0]['tokens'] == ['Tea']


# =============================================================================
# Errors
# =============================================================================

class TestErrors:
    """Tests that malformed documents fail as a whole."""

    @pytest.mark.parametrize('data', [
        b'not json',
        b'[]',
        b'"snapshots"',
        b'{}',
        b'{"questions":[]}',
        b'{"snapshots":null}',
        b'{"snapshots":{}}',
        b'{"snapshots":[1]}',
        b'{"snapshots":[{"steps":"many"}]}',
        b'{"snapshots":[{"steps":1.5}]}',
        b'{"snapshots":[{"battery":true}]}',
        b'{"snapshots":[{"battery":NaN}]}',
        b'{"snapshots":[{"battery":-Infinity}]}',
        b'{"snapshots":[{"battery":1e400}]}',
        b'{"snapshots":[{"sensorNotes":Infinity}]}',
        b'{"snapshots":[{"sensorNotes":-1e999}]}',
        b'{"snapshots":[{"audio":[]}]}',
        b'{"snapshots":[{"responses":{}}]}',
        b'{"snapshots":[{"responses":[{"answeredOptions":[1]}]}]}',
        b'{"snapshots":[{"connection":"wifi"}]}',
        b'{"snapshots":[],"questions":[{"questionType":"text"}]}',
    ])
    def test_invalid_document(self, data):
        """Test structurally invalid documents are rejected."""
        with pytest.raises(InvalidDocument):
            decode_document(data)

    def test_deeply_nested_document(self):
        """Test nesting past the recursion limit is an invalid document."""
        data = b'{"snapshots":[{"extra":' + b'[' * 100000 + b']' * 100000 + b'}]}'
        with pytest.raises(InvalidDocument, match='nested'):
            decode_document(data)

    def test_malformed_timestamp(self):
        """Test a bad date names its path."""
        with pytest.raises(MalformedTimestamp, match=r"snapshots\[0\]\.date"):
            decode_document(_doc(date='yesterday'))

    def test_malformed_phrase(self):
        """Test a bad token names its path."""
        with pytest.raises(MalformedPhrase, match=r"snapshots\[0\]\.responses\[0\]\.tokens\[1\]"):
            decode_document(_doc(responses=[{'tokens': ['ok', 7]}]))

    def test_malformed_region(self):
        """Test a bad region fails the document."""
        with pytest.raises(MalformedRegion):
            decode_document(_doc(location={'placemark': {'region': 'nowhere'}}))

    def test_mixed_timestamps_conflict(self):
        """Test dates of both versions conflict."""
        raw = {'snapshots': [{'date': 411474512.0}, {'date': '2015-10-23T08:30:12-0700'}]}
        with pytest.raises(SchemaConflict):
            decode_document(json.dumps(raw))

    def test_mixed_timestamp_and_token_conflict(self):
        """Test a v2 date and a v1 token conflict."""
        with pytest.raises(SchemaConflict, match='tokens'):
            decode_document(_doc(date='2015-10-23T08:30:12-0700', responses=[{'tokens': ['Working']}]))

    def test_nested_timestamp_conflict(self):
        """Test nested photo dates take part in inference."""
        raw = _doc(date=411474512.0, photoSet={'photos': [{'dateTime': '2015-10-23T08:30:12-0700'}]})
        with pytest.raises(SchemaConflict):
            decode_document(raw)

    def test_decode_errors_are_value_errors(self):
        """Test decode errors are ValueErrors."""
        with pytest.raises(ValueError):
            decode_document(b'{}')
        with pytest.raises(DecodeError):
            decode_document(_doc(date=True))

    def test_unknown_connection_code(self):
        """Test unknown connection codes warn and roundtrip."""
        with pytest.warns(UnknownCodeWarning):
            day = decode_document(_doc(connection=99))
        connection = day.snapshots[0].connection
        assert (connection.code, connection.method, connection.description) == (99, '', '')
        assert json.loads(encode_document(day)) == {'snapshots': [{'connection': 99}]}


# =============================================================================
# Day
# =============================================================================

class TestDay:
    """Tests for Day accessors and provenance."""

    def test_earliest_and_latest(self, v2_bytes):
        """Test earliest and latest snapshot selection."""
        day = decode_document(v2_bytes)
        assert day.earliest_snapshot().id == '0E8A2A7E-5E2C-4C52-9C64-0F7E7D2B9A11'
        assert day.latest_snapshot().id == '13D8EAFC-7777-4777-8777-777777777777'

    def test_single_snapshot(self):
        """Test one snapshot is both earliest and latest."""
        day = decode_document('{"snapshots":[{"steps":5}]}')
        assert day.earliest_snapshot() is day.latest_snapshot()

    def test_empty_day(self):
        """Test an empty day has no earliest or latest snapshot."""
        day = decode_document('{"snapshots":[]}')
        with pytest.raises(IndexError):
            day.earliest_snapshot()
        with pytest.raises(IndexError):
            day.latest_snapshot()

    def test_decode_file(self, v2_bytes):
        """Test decoding a ReportFile attaches its provenance."""
        report = ReportFile(
            name='2015-10-23-reporter-export.json',
            path=Path('/tmp/2015-10-23-reporter-export.json'),
            source='filesystem',
            modified_time=datetime(2015, 10, 24, 1, 0),
            date=date(2015, 10, 23),
            contents=v2_bytes,
        )
        day = decode_file(report)
        assert day.date == date(2015, 10, 23)
        assert day.file is report
        assert day.schema_version == SchemaVersion.V2

    def test_encode_is_compact_utf8(self):
        """Test encoded output is compact UTF-8."""
        day = decode_document('{"snapshots": [{"sectionIdentifier": "caf\\u00e9"}]}')
        assert encode_document(day) == '{"snapshots":[{"sectionIdentifier":"café"}]}'.encode('utf-8')


class TestIndependentSessions:
    """Tests that each decode call infers its own version."""

    def test_sequential(self, v1_bytes, v2_bytes):
        """Test documents of different versions decode one after another."""
        first = decode_document(v1_bytes)
        second = decode_document(v2_bytes)
        third = decode_document(v1_bytes)
        assert first.schema_version == SchemaVersion.V1
        assert second.schema_version == SchemaVersion.V2
        assert third.schema_version == SchemaVersion.V1

    def test_concurrent(self, v1_bytes, v2_bytes, v1_json, v2_json):
        """Test documents of different versions decode in parallel."""
        inputs = [v1_bytes, v2_bytes] * 20
        with ThreadPoolExecutor(max_workers=8) as pool:
            days = list(pool.map(decode_document, inputs))
        for day, raw in zip(days, inputs):
            expected = SchemaVersion.V1 if raw is v1_bytes else SchemaVersion.V2
            assert day.schema_version == expected
        assert json.loads(encode_document(days[0])) == v1_json
        assert json.loads(encode_document(days[1])) == v2_json
