"""Tests for list formatting, pagination and query builders."""

from datetime import date

import pytest

from publisher_app.utils.dashboard import (
    PaymentQuery,
    SiteQuery,
    StatsQuery,
    WithdrawalQuery,
    format_amount,
    format_created_at,
    format_date,
    format_date_for_api,
    match_website_id,
    pagination_pages,
    parse_date_input,
    payment_row,
    payment_totals,
    shorten_wallet,
    site_row,
    stat_row,
    status_label,
    withdrawal_row,
)
from publisher_app.utils.schemas import Page, SupportData, WithdrawalSummary


class TestFormatting:
    def test_api_date(self):
        assert format_date_for_api(date(2024, 3, 7)) == "2024-03-07"
        assert format_date_for_api(None) is None

    def test_display_date(self):
        assert format_date("2024-03-07T10:00:00") == "07-03-2024"
        assert format_date("") == ""
        assert format_date("not a date") == "not a date"

    def test_created_at_is_utc(self):
        assert format_created_at("2024-03-07T23:30:00-02:00") == "08-03-24"
        assert format_created_at(None) == "N/A"

    def test_shorten_wallet(self):
        assert shorten_wallet("0x1234567890abcdef") == "0x1234...abcdef"
        assert shorten_wallet("short") == "short"
        assert shorten_wallet(None) == ""

    def test_labels(self):
        assert status_label(True) == "Active"
        assert status_label(False) == "Inactive"
        assert format_amount("1234.5") == "1,234.50"
        assert format_amount(None) == "0.00"


class TestPaginationPages:
    @pytest.mark.parametrize(
        "current,total,expected",
        [
            (1, 1, [1]),
            (1, 5, [1, 2, 3, 4, 5]),
            (1, 10, [1, 2, 3, "...", 10]),
            (5, 10, [1, 2, 3, 4, 5, 6, 7, "...", 10]),
            (6, 12, [1, "...", 4, 5, 6, 7, 8, "...", 12]),
            (10, 10, [1, "...", 8, 9, 10]),
        ],
    )
    def test_pages(self, current, total, expected):
        assert pagination_pages(current, total) == expected

    def test_no_pages(self):
        assert pagination_pages(1, 0) == []


class TestQueries:
    def test_site_query_omits_empty_filters(self):
        assert SiteQuery().params() == {"page": 1, "limit": 10}

    def test_site_query_filters(self):
        q = SiteQuery(page=2, limit=20, search="  blog ", created_on=date(2024, 1, 5), status="false")

        assert q.params() == {
            "page": 2,
            "limit": 20,
            "WebsiteName": "blog",
            "createdAt": "2024-01-05",
            "isActive": False,
        }

    def test_withdrawal_dates_need_both_ends(self):
        q = WithdrawalQuery(start_date=date(2024, 1, 1))

        assert q.date_range_ready is False
        assert "startDate" not in q.params()

        q.end_date = date(2024, 1, 31)
        assert q.date_range_ready is True
        assert q.params()["endDate"] == "2024-01-31"

    def test_withdrawal_clear(self):
        q = WithdrawalQuery(page=3, status="PENDING", network="n1", wallet="0xabc")

        q.clear()

        assert q.params() == {"page": 1, "limit": 10}

    def test_payment_query_is_always_transferred(self):
        q = PaymentQuery(network="n1", wallet=" 0xabc ", start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
        q.status = "PENDING"

        assert q.params() == {
            "page": 1,
            "limit": 10,
            "status": "TRANSFERRED",
            "network": "n1",
            "wallet": "0xabc",
            "startDate": "2024-01-01",
            "endDate": "2024-01-31",
        }

    def test_payment_query_clear_keeps_status(self):
        q = PaymentQuery(page=4, network="n1", wallet="0xabc")

        q.clear()

        assert q.status == "TRANSFERRED"
        assert q.params() == {"page": 1, "limit": 10, "status": "TRANSFERRED"}

    def test_stats_query_go_to_bounds(self):
        q = StatsQuery(website_id="w1")

        assert q.go_to(0, 5) is False
        assert q.go_to(6, 5) is False
        assert q.go_to(3, 5) is True
        assert q.params() == {"page": 3, "limit": 10, "website_id": "w1"}


class TestEnvelopes:
    def test_page_from_envelope(self):
        page = Page.from_envelope(
            {"userstats": {"docs": [{"_id": "1"}], "totalDocs": 1, "totalPages": 1, "page": 1, "nextPage": None}},
            "userstats",
        )

        assert page.docs == [{"_id": "1"}]
        assert page.total_docs == 1
        assert page.next_page is None

    def test_missing_envelope_gives_empty_page(self):
        page = Page.from_envelope({}, "usersites")

        assert page.docs == []
        assert page.total_pages == 1

    def test_support_data_keeps_active_faqs(self):
        data = SupportData.model_validate(
            {
                "FAQS": [
                    {"_id": "1", "FAQ": "Q1", "Answer": "A1", "isFAqActive": True},
                    {"_id": "2", "FAQ": "Q2", "Answer": "A2", "isFAqActive": False},
                ],
                "TelegramSupport": "https://t.me/help",
            }
        )

        assert [f.question for f in data.active_faqs()] == ["Q1"]
        assert data.telegram_support == "https://t.me/help"

    def test_support_data_company_details(self):
        data = SupportData.model_validate(
            {"CompanyName": "Ads Ltd", "Address": "1 Main St", "City": "Dubai", "Country": "UAE"}
        )

        assert (data.company_name, data.address, data.city, data.country) == ("Ads Ltd", "1 Main St", "Dubai", "UAE")
        assert SupportData().company_name == ""

    def test_withdrawal_summary(self):
        summary = WithdrawalSummary.from_response(
            {
                "withdrawals": {"docs": []},
                "withdrawalData": {
                    "TransferredAmount": 120.5,
                    "Balance": 30,
                    "PendingAmount": 10,
                    "totalAmount": 160.5,
                    "rejectedAmount": None,
                },
            }
        )

        assert summary.transferred_amount == 120.5
        assert summary.balance == 30
        assert summary.pending_amount == 10
        assert summary.total_amount == 160.5
        assert summary.rejected_amount == 0

    def test_missing_withdrawal_summary_is_zero(self):
        assert WithdrawalSummary.from_response({}).total_amount == 0
        assert WithdrawalSummary.from_response(None).balance == 0


class TestRows:
    def test_parse_date_input(self):
        assert parse_date_input("2024-03-07") == date(2024, 3, 7)
        assert parse_date_input("  ") is None
        assert parse_date_input("07/03/2024") is None

    def test_site_row(self):
        row = site_row({
            "WebsiteName": "Game",
            "WebsiteURL": "https://game.example",
            "WebAPPUrl": "https://t.me/game_bot",
            "createdAt": "2024-03-07T10:00:00Z",
            "isActive": False,
        })
        assert row == ["Game", "https://game.example", "https://t.me/game_bot", "07-03-2024", "Inactive"]

    def test_stat_row_without_site(self):
        row = stat_row({"createdAt": "2024-03-07T10:00:00Z", "impressions": 12345, "CPM": 1.5, "Profit": 18.5})
        assert row == ["07-03-2024", "Unknown", "12,345", "1.50", "18.50"]

    def test_withdrawal_row(self):
        row = withdrawal_row({
            "createdAt": "2024-03-07T23:30:00-02:00",
            "NetworkId": {"_id": "n1", "Network": "TRC20"},
            "WalletAddress": "TXYZ1234567890ABCDEF",
            "AmountInUSD": 50,
            "FeeInUSD": 1,
            "Status": "PENDING",
        })
        assert row == ["08-03-24", "TRC20", "TXYZ12...ABCDEF", "50.00", "1.00", "PENDING"]

    def test_payment_row_shows_gross_fee_and_net(self):
        row = payment_row({
            "createdAt": "2024-03-07T10:00:00Z",
            "NetworkId": {"_id": "n1", "Network": "BEP20"},
            "WalletAddress": "0x1234567890abcdef",
            "AmountInUSD": 48.5,
            "FeeInUSD": 1.5,
            "Status": "TRANSFERRED",
        })
        assert row == ["07-03-24", "0x1234...abcdef", "BEP20", "50.00", "1.50", "48.50", "TRANSFERRED"]

    def test_payment_totals(self):
        docs = [
            {"AmountInUSD": 48.5, "FeeInUSD": 1.5},
            {"AmountInUSD": 100, "FeeInUSD": None},
            {"AmountInUSD": "bad", "FeeInUSD": 2},
        ]

        assert payment_totals(docs) == {"total": 152.0, "fee": 3.5, "amount": 148.5}
        assert payment_totals([]) == {"total": 0, "fee": 0, "amount": 0}

    def test_match_website_id(self):
        docs = [
            {"website_id": {"_id": "s1", "WebsiteName": "Alpha Game"}},
            {"website_id": {"_id": "s2", "WebsiteName": "Beta Quiz"}},
            {"website_id": None},
        ]
        assert match_website_id(docs, "quiz") == "s2"
        assert match_website_id(docs, "missing") == ""
        assert match_website_id(docs, " ") == ""
