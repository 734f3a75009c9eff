"""Unit tests for progression metrics."""

from unittest.mock import Mock, patch

import requests

from guild.analytics import build_progression_series, record_xp_award, submit_series
from guild.config import Settings
from guild.ranks import award_xp


SETTINGS = Settings(request_timeout=3.0, datadog_api_key="test-api-key")


class TestBuildProgressionSeries:
    """Test conversion of XP awards into series."""

    def test_award_without_rank_up(self):
        series = build_progression_series(award_xp(100, 400), 1234567890)

        assert [entry["metric"] for entry in series] == [
            "guild.xp.awarded",
            "guild.xp.total",
            "guild.rank.progress"
        ]
        assert series[0]["points"] == [[1234567890, 400]]
        assert series[1]["points"] == [[1234567890, 500]]
        assert series[2]["points"] == [[1234567890, 50.0]]
        assert all(entry["type"] == "gauge" for entry in series)
        assert all(entry["tags"] == ["rank:F"] for entry in series)

    def test_rank_up_adds_count(self):
        series = build_progression_series(award_xp(2500, 600), 1234567890)

        rank_up = series[-1]
        assert rank_up["metric"] == "guild.rank_up"
        assert rank_up["type"] == "count"
        assert rank_up["points"] == [[1234567890, 1]]
        assert rank_up["tags"] == ["from:E", "to:D"]
        assert series[0]["tags"] == ["rank:D"]

    def test_terminal_rank_progress_is_complete(self):
        series = build_progression_series(award_xp(24000, 2000), 0)
        assert series[2]["points"] == [[0, 100.0]]


class TestSubmitSeries:
    """Test fail-open submission."""

    @patch('guild.analytics.requests.post')
    def test_successful_submit(self, mock_post):
        mock_response = Mock()
        mock_response.raise_for_status = Mock()
        mock_post.return_value = mock_response

        assert submit_series([{"metric": "guild.xp.total"}], "test-api-key", 3.0) is True

        call_args = mock_post.call_args
        assert call_args.kwargs['json'] == {"series": [{"metric": "guild.xp.total"}]}
        assert call_args.kwargs['headers']['DD-API-KEY'] == 'test-api-key'
        assert call_args.kwargs['timeout'] == 3.0

    @patch('guild.analytics.requests.post')
    def test_http_error_returns_false(self, mock_post):
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("403 Forbidden")
        mock_post.return_value = mock_response

        assert submit_series([], "invalid-api-key", 3.0) is False

    @patch('guild.analytics.requests.post')
    def test_timeout_returns_false(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout("Request timeout")

        assert submit_series([], "test-api-key", 3.0) is False


class TestRecordXpAward:
    """Test reporting of XP awards."""

    @patch('guild.analytics.requests.post')
    def test_award_is_reported(self, mock_post):
        mock_post.return_value = Mock()

        assert record_xp_award(award_xp(900, 200), SETTINGS, now=1700000000.7) is True

        series = mock_post.call_args.kwargs['json']['series']
        assert series[0]["points"] == [[1700000000, 200]]
        assert series[-1]["metric"] == "guild.rank_up"
        assert mock_post.call_args.kwargs['timeout'] == 3.0

    @patch('guild.analytics.requests.post')
    def test_award_without_rank_up_is_reported(self, mock_post):
        mock_post.return_value = Mock()

        assert record_xp_award(award_xp(100, 100), SETTINGS, now=0) is True

        series = mock_post.call_args.kwargs['json']['series']
        assert "guild.rank_up" not in [entry["metric"] for entry in series]

    @patch('guild.analytics.requests.post')
    def test_missing_api_key_sends_nothing(self, mock_post):
        assert record_xp_award(award_xp(900, 200), Settings()) is False
        mock_post.assert_not_called()

    @patch('guild.analytics.requests.post')
    def test_outage_does_not_raise(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("Connection refused")

        assert record_xp_award(award_xp(900, 200), SETTINGS) is False
