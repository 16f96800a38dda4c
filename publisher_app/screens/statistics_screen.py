from __future__ import annotations

from typing import Any, Dict, List

from kivy.app import App
from kivy.logger import Logger
from kivy.properties import BooleanProperty
from kivy.uix.screenmanager import Screen

from publisher_app.utils.dashboard import StatsQuery, match_website_id, parse_date_input, stat_row
from publisher_app.utils.popup import show_message
from publisher_app.utils.schemas import Page
from publisher_app.utils.worker import run_in_background

STAT_HEADERS = ("Date", "Website", "Impressions", "CPM", "Profit")


class StatisticsScreen(Screen):
    loading = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.query = StatsQuery()
        self.total_pages = 1
        self.docs: List[Dict[str, Any]] = []

    def _get(self, wid: str) -> str:
        w = self.ids.get(wid)
        return (w.text or "").strip() if w else ""

    def on_enter(self, *args):
        self.fetch_stats()

    def show_site(self, website_id: str):
        """Opened from a site row: statistics for that site only."""
        self.query = StatsQuery(limit=self.query.limit, website_id=website_id)
        if self.manager:
            self.manager.current = self.name

    def apply_filters(self):
        start = parse_date_input(self._get("start_date_input"))
        end = parse_date_input(self._get("end_date_input"))
        if bool(start) != bool(end):
            show_message("Date range", "Pick both a start and an end date.")
            return
        self.query.start_date = start
        self.query.end_date = end
        self.query.website_id = match_website_id(self.docs, self._get("website_filter"))
        limit = self.ids.get("limit_spinner")
        if limit and limit.text.isdigit():
            self.query.limit = int(limit.text)
        self.query.page = 1
        self.fetch_stats()

    def clear_filters(self):
        for wid in ("website_filter", "start_date_input", "end_date_input"):
            w = self.ids.get(wid)
            if w:
                w.text = ""
        self.query = StatsQuery(limit=self.query.limit)
        self.fetch_stats()

    def go_to_page(self, page: int):
        if self.query.go_to(page, self.total_pages):
            self.fetch_stats()

    def fetch_stats(self):
        if self.loading:
            return
        self.loading = True
        table = self.ids.get("stats_table")
        if table:
            table.show_message("Loading statistics...")
        api = App.get_running_app().api
        params = self.query.params()

        def done(data: Any, err):
            self.loading = False
            if err is not None:
                Logger.warning("StatisticsScreen: load failed (%s)", err)
                show_message("Error", "Failed to load statistics.")
                if table:
                    table.show_message("Failed to load statistics.")
                return
            page = Page.from_envelope(data, "userstats")
            self.docs = page.docs
            self.total_pages = page.total_pages
            if table:
                table.show(STAT_HEADERS, [stat_row(d) for d in page.docs], empty_text="No statistics found")
            pager = self.ids.get("stats_pager")
            if pager:
                pager.show(page.page, page.total_pages, self.go_to_page)

        run_in_background(lambda: api.get_user_stats(params), done)
