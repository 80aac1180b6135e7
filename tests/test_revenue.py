"""Tests for revenue parsing and deal / Treasury aggregation."""

from datetime import date

import pytest

from salesdesk.services.revenue import (
    TimeWindow,
    build_treasury,
    format_currency,
    format_revenue,
    in_time_window,
    parse_revenue,
    summarize_deals,
)

from conftest import NOW


def deal(**kw):
    base = {
        "id": kw.pop("id", 1),
        "user_id": "user-anna",
        "title": "Deal",
        "deal_value": 0,
        "payment_type": "one_time",
        "monthly_amount": 0,
        "installation_fee": 0,
        "status": "active",
        "closed_date": date(2024, 5, 2),
        "salesman_name": "anna",
        "salesman_email": "anna@example.com",
    }
    base.update(kw)
    return base


class TestParseRevenue:
    @pytest.mark.parametrize("text,expected", [
        ("€1M", 1_000_000),
        ("1.5m", 1_500_000),
        ("500k", 500_000),
        ("500 K €", 500_000),
        ("1,200,000", 1_200_000),
        ("€ 2 300", 2300),
        ("750", 750),
    ])
    def test_parses(self, text, expected):
        assert parse_revenue(text) == expected

    @pytest.mark.parametrize("text", [None, "", "n/a", "€"])
    def test_unparseable(self, text):
        assert parse_revenue(text) is None

    def test_comma_is_grouping_even_with_suffix(self):
        assert parse_revenue("1,5k") == 15_000
        assert parse_revenue("1,200k") == 1_200_000

    def test_format_revenue(self):
        assert format_revenue("1M") == "€1,000,000"
        assert format_revenue("2.5k") == "€2,500"
        assert format_revenue("unknown") == ""

    def test_format_currency(self):
        assert format_currency(1234.5) == "€1,234.50"
        assert format_currency(None) == "€0.00"


class TestTimeWindow:
    today = date(2024, 5, 15)

    @pytest.mark.parametrize("closed,window,expected", [
        (date(2020, 1, 1), TimeWindow.ALL, True),
        (date(2024, 1, 1), TimeWindow.YEAR, True),
        (date(2023, 12, 31), TimeWindow.YEAR, False),
        (date(2024, 4, 1), TimeWindow.QUARTER, True),
        (date(2024, 3, 31), TimeWindow.QUARTER, False),
        (date(2024, 5, 31), TimeWindow.MONTH, True),
        (date(2023, 5, 15), TimeWindow.MONTH, False),
        ("2024-05-03", TimeWindow.MONTH, True),
        (None, TimeWindow.MONTH, False),
    ])
    def test_buckets(self, closed, window, expected):
        assert in_time_window(closed, window, self.today) is expected


class TestSummarizeDeals:
    deals = [
        deal(deal_value=1000, installation_fee=200),
        deal(payment_type="monthly", deal_value=1200, monthly_amount=100),
        deal(payment_type="monthly", deal_value=600, monthly_amount=50, status="cancelled"),
    ]

    def test_totals(self):
        s = summarize_deals(self.deals)
        assert s.total_deals == 3
        assert s.active_deals == 2
        assert s.total_revenue == 2800
        # cancelled subscriptions do not recur
        assert s.monthly_recurring == 100
        assert s.one_time_total == 1000
        assert s.installation_fees == 200

    def test_installation_fee_included_on_request(self):
        assert summarize_deals(self.deals, include_installation=True).one_time_total == 1200

    def test_missing_amounts_count_as_zero(self):
        s = summarize_deals([deal(deal_value=None, installation_fee=None)])
        assert s.total_revenue == 0
        assert s.one_time_total == 0


class TestTreasury:
    deals = [
        deal(id=1, deal_value=1000, installation_fee=200),
        deal(id=2, payment_type="monthly", deal_value=1200, monthly_amount=100,
             closed_date=date(2024, 1, 10)),
        deal(id=3, deal_value=5000, status="completed", closed_date=date(2023, 11, 1),
             salesman_name="ben", salesman_email="ben@example.com", user_id="user-ben"),
        deal(id=4, deal_value=999, salesman_name="", salesman_email=""),
    ]

    def test_all_time_rollup(self):
        report = build_treasury(self.deals, TimeWindow.ALL, now=NOW)
        assert [s.email for s in report.salesmen] == ["ben@example.com", "anna@example.com"]

        anna = report.salesman("anna@example.com")
        assert anna.total_value == 2200
        assert anna.one_time_payments == 1200
        assert anna.monthly_recurring == 100
        assert anna.installation_fees == 200
        assert anna.active_deals == 2
        assert anna.deals_count == 2
        assert anna.this_month_value == 1000

        company = report.company
        assert company.total_value == 7200
        assert company.total_deals == 3
        assert company.active_salesmen == 2
        assert company.this_month_revenue == 1000

    def test_deal_without_salesman_is_skipped(self):
        report = build_treasury(self.deals, TimeWindow.ALL, now=NOW)
        ids = {d["id"] for s in report.salesmen for d in s.deals}
        assert 4 not in ids

    def test_year_window(self):
        report = build_treasury(self.deals, TimeWindow.YEAR, now=NOW)
        assert [s.email for s in report.salesmen] == ["anna@example.com"]
        assert report.company.total_value == 2200

    def test_quarter_and_month_windows(self):
        quarter = build_treasury(self.deals, TimeWindow.QUARTER, now=NOW)
        assert quarter.company.total_value == 1000
        assert quarter.company.one_time_payments == 1200

        month = build_treasury(self.deals, "month", now=NOW)
        assert month.window is TimeWindow.MONTH
        assert month.company.this_month_revenue == 1000
        assert month.company.monthly_recurring == 0

    def test_as_dict(self):
        data = build_treasury(self.deals, TimeWindow.ALL, now=NOW).as_dict()
        assert data["window"] == "all"
        assert data["company"]["total_deals"] == 3
        assert data["salesmen"][1]["deal_ids"] == [1, 2]
