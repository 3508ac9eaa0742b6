"""Tests for query and job request validation."""
import pytest

from agrimetrics.core.exceptions import ValidationError
from agrimetrics.schemas.analytics import (
    ActivityQuery,
    AnalyticsQuery,
    ExportRequest,
    FinancialQuery,
    ReportRequest,
)
from agrimetrics.services.analytics.validation import (
    custom_range,
    is_valid_id,
    parse_datetime,
    validate_export_request,
    validate_query,
    validate_report_request,
)

FARM_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
CUID = "cjld2cjxh0000qzrmn831i7rn"


class TestIdentifiers:
    @pytest.mark.parametrize("value", [FARM_ID, FARM_ID.upper(), CUID])
    def test_valid(self, value):
        assert is_valid_id(value)

    @pytest.mark.parametrize("value", ["", "farm-1", "123", "7c9e6679742540de944be07fc1f90ae7", "c123"])
    def test_invalid(self, value):
        assert not is_valid_id(value)


class TestValidateQuery:
    def test_missing_query(self):
        with pytest.raises(ValidationError, match="Query parameters are required"):
            validate_query(None)

    @pytest.mark.parametrize("period", ["week", "month", "quarter", "year"])
    def test_periods_accepted(self, period):
        validate_query(AnalyticsQuery(period=period))

    def test_unknown_period_rejected(self):
        with pytest.raises(ValidationError, match="Invalid period 'decade'"):
            validate_query(AnalyticsQuery(period="decade"))

    def test_malformed_farm_id(self):
        with pytest.raises(ValidationError, match="Invalid farmId format"):
            validate_query(AnalyticsQuery(farm_id="not-an-id"))

    def test_malformed_commodity_id(self):
        with pytest.raises(ValidationError, match="Invalid commodityId format"):
            validate_query(FinancialQuery(commodity_id="wheat"))

    def test_unknown_activity_type(self):
        with pytest.raises(ValidationError, match="Invalid activityType"):
            validate_query(ActivityQuery(activity_type="DANCING"))

    def test_activity_type_case_insensitive(self):
        validate_query(ActivityQuery(activity_type="irrigation"))

    def test_start_after_end(self):
        query = AnalyticsQuery(start_date="2024-06-01", end_date="2024-05-01")
        with pytest.raises(ValidationError, match="Start date must be before end date"):
            validate_query(query)

    def test_three_year_span_rejected(self):
        query = AnalyticsQuery(start_date="2020-01-01", end_date="2023-01-01")
        with pytest.raises(ValidationError, match="cannot exceed 2 years"):
            validate_query(query)

    def test_one_year_span_accepted(self):
        validate_query(AnalyticsQuery(start_date="2023-01-01", end_date="2024-01-01"))

    def test_exactly_two_years_accepted(self):
        validate_query(AnalyticsQuery(start_date="2022-01-01T00:00:00Z", end_date="2024-01-01T00:00:00Z"))

    def test_unparsable_date(self):
        with pytest.raises(ValidationError, match="Invalid date format"):
            validate_query(AnalyticsQuery(start_date="yesterday", end_date="2024-01-01"))

    def test_single_bound_is_ignored(self):
        query = AnalyticsQuery(start_date="2024-01-01")
        validate_query(query)
        assert custom_range(query) is None


class TestParseDatetime:
    def test_zulu_normalized_to_naive_utc(self):
        parsed = parse_datetime("2024-05-01T10:00:00Z")
        assert parsed.tzinfo is None
        assert parsed.hour == 10

    def test_offset_converted(self):
        assert parse_datetime("2024-05-01T12:00:00+02:00").hour == 10


class TestExportRequest:
    def test_valid(self):
        validate_export_request(ExportRequest(type="financial", format="csv", period="quarter"))

    def test_missing(self):
        with pytest.raises(ValidationError):
            validate_export_request(None)

    def test_bad_type(self):
        with pytest.raises(ValidationError, match="Invalid export type"):
            validate_export_request(ExportRequest(type="weather", format="csv"))

    def test_bad_format(self):
        with pytest.raises(ValidationError, match="Invalid export format"):
            validate_export_request(ExportRequest(type="market", format="pdf"))

    def test_bad_farm(self):
        with pytest.raises(ValidationError, match="Invalid farmId format"):
            validate_export_request(ExportRequest(type="market", format="csv", farm_id="x"))


class TestReportRequest:
    def _request(self, **overrides):
        fields = dict(title="Q2 review", type="comprehensive", farm_ids=[FARM_ID], recipients=["ops@example.com"])
        fields.update(overrides)
        return ReportRequest(**fields)

    def test_valid(self):
        validate_report_request(self._request())

    def test_blank_title(self):
        with pytest.raises(ValidationError, match="Report title is required"):
            validate_report_request(self._request(title="   "))

    def test_bad_type(self):
        with pytest.raises(ValidationError, match="Invalid report type"):
            validate_report_request(self._request(type="weekly"))

    def test_bad_format(self):
        with pytest.raises(ValidationError, match="Invalid report format"):
            validate_report_request(self._request(format="docx"))

    def test_bad_farm_entry(self):
        with pytest.raises(ValidationError, match="farmIds entry"):
            validate_report_request(self._request(farm_ids=[FARM_ID, "nope"]))

    def test_bad_recipient(self):
        with pytest.raises(ValidationError, match="Invalid recipient email"):
            validate_report_request(self._request(recipients=["not-an-email"]))
