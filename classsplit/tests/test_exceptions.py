"""Test suite for classsplit exceptions."""

import pytest

from classsplit.exceptions import (
    AggregateNotFoundError,
    ClassSplitError,
    ConfigurationError,
    InputError,
    OutputError,
    PlanError,
    RenderError,
    SourceParseError,
    SourceReadError,
    UnsupportedAggregateError,
)


class TestHierarchy:
    """Test the exception hierarchy."""

    @pytest.mark.parametrize(
        'exc',
        [
            SourceReadError('A.cs'),
            SourceParseError('A.cs'),
            AggregateNotFoundError('A.cs'),
            UnsupportedAggregateError('A.cs', 'A', 'reason'),
        ],
    )
    def test_input_errors(self, exc):
        assert isinstance(exc, InputError)
        assert isinstance(exc, ClassSplitError)

    @pytest.mark.parametrize(
        'exc',
        [
            RenderError(1, 'new'),
            PlanError('bad plan'),
            ConfigurationError('bad config'),
            OutputError('out.cs'),
        ],
    )
    def test_other_errors(self, exc):
        assert not isinstance(exc, InputError)
        assert isinstance(exc, ClassSplitError)

    def test_message_attribute(self):
        assert ClassSplitError('something broke').message == 'something broke'


class TestMessages:
    """Test error messages."""

    def test_source_read_error(self):
        cause = FileNotFoundError('no such file')
        exc = SourceReadError('A.cs', cause=cause)

        assert exc.path == 'A.cs'
        assert exc.cause is cause
        assert str(exc) == "Failed to read source 'A.cs': no such file"

    def test_source_parse_error(self):
        exc = SourceParseError('A.cs', ['3:5', '9:1'])

        assert exc.errors == ['3:5', '9:1']
        assert str(exc) == "Failed to parse 'A.cs': syntax errors at 3:5, 9:1"

    def test_source_parse_error_without_locations(self):
        assert str(SourceParseError('A.cs')) == "Failed to parse 'A.cs'"

    def test_aggregate_not_found(self):
        assert str(AggregateNotFoundError('A.cs')) == "No class found in 'A.cs'"

    def test_several_aggregates(self):
        exc = AggregateNotFoundError('A.cs', ['First', 'Second'])

        assert exc.found == ['First', 'Second']
        assert str(exc) == "Expected a single type in 'A.cs', found 2: First, Second"

    def test_unsupported_aggregate(self):
        exc = UnsupportedAggregateError('A.cs', 'Hidden', 'file-local')

        assert exc.name == 'Hidden'
        assert str(exc) == "Cannot split 'Hidden' in 'A.cs': file-local"

    def test_render_error(self):
        exc = RenderError(3, 'original', cause=ValueError('bad'))

        assert exc.unit_count == 3
        assert exc.role == 'original'
        assert str(exc) == 'Failed to render 3 member(s) as original container: bad'

    def test_configuration_error(self):
        exc = ConfigurationError('Invalid value', 'cfg.yaml', 'max_lines')

        assert exc.config_path == 'cfg.yaml'
        assert exc.field == 'max_lines'
        assert str(exc) == "Invalid value in 'cfg.yaml' (field: max_lines)"

    def test_output_error(self):
        exc = OutputError('Foo2.cs', cause=PermissionError('denied'))

        assert exc.output_path == 'Foo2.cs'
        assert str(exc) == "Failed to write output to 'Foo2.cs': denied"
