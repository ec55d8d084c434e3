"""
Fire-and-forget delivery of committed trial responses.

A trial commit hands its response to ``EventLogger.submit``, which queues the
delivery on a worker thread and returns immediately. Whatever happens to the
delivery afterwards (success, connection error, rejection by the endpoint)
is reported on the ``radai_study.event_logger`` logger and never reaches the
session.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

import gspread
import requests
from google.oauth2.service_account import Credentials

logger = logging.getLogger("radai_study.event_logger")

SHEETS_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


# === SINKS ===

class WebhookSink:
    """One-way JSON POST, e.g. to a Google Apps Script web app."""

    def __init__(self, url: str, timeout_sec: float = 10.0):
        self.url = url
        self.timeout_sec = timeout_sec

    def __call__(self, record: dict) -> None:
        resp = requests.post(self.url, json=record, timeout=self.timeout_sec)
        # Body is never read; only a rejection matters, and only for diagnostics
        resp.raise_for_status()

    def __repr__(self):
        return f"WebhookSink({self.url!r})"


def connect_gsheet(service_account_info, sheet_url):
    creds = Credentials.from_service_account_info(service_account_info, scopes=SHEETS_SCOPES)
    client = gspread.authorize(creds)
    return client.open_by_url(sheet_url)


class SheetSink:
    """Appends each record as a row of a Google Sheets worksheet.

    Deliveries may overlap on the logger's worker threads, so the header
    check and the row append happen under one lock.
    """

    def __init__(self, open_spreadsheet: Callable[[], "gspread.Spreadsheet"], worksheet: str = "Responses"):
        self.open_spreadsheet = open_spreadsheet
        self.worksheet = worksheet
        self._spreadsheet = None
        self._lock = threading.Lock()

    def _sheet(self):
        # Opened on first delivery, not at session start; caller holds the lock
        if self._spreadsheet is None:
            self._spreadsheet = self.open_spreadsheet()
        return self._spreadsheet.worksheet(self.worksheet)

    def __call__(self, record: dict) -> None:
        with self._lock:
            ws = self._sheet()

            # Header row grows as new fields show up; column order is first-seen
            headers = ws.row_values(1)
            if not headers:
                headers = list(record.keys())
                ws.append_row(headers)

            new_keys = [k for k in record.keys() if k not in headers]
            if new_keys:
                headers.extend(new_keys)
                ws.update_cells([gspread.cell.Cell(1, i + 1, val) for i, val in enumerate(headers)])

            values = [str(record.get(h, "")) for h in headers]
            ws.append_row(values)

    def __repr__(self):
        return f"SheetSink({self.worksheet!r})"


# === LOGGER ===

class EventLogger:
    """Dispatches each submitted response to ``sink`` without waiting for it.

    ``sink`` is any callable taking the flat wire record; ``None`` turns
    logging off. ``on_error`` receives ``(record, exception)`` for every
    failed delivery, after the failure has been logged.
    """

    def __init__(
        self,
        sink: Optional[Callable[[dict], None]] = None,
        executor: Optional[Executor] = None,
        on_error: Optional[Callable[[dict, BaseException], None]] = None,
    ):
        self.sink = sink
        self.on_error = on_error
        self._executor = executor

    @property
    def enabled(self) -> bool:
        return self.sink is not None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="radai-log")
        return self._executor

    def submit(self, response) -> Optional[Future]:
        if self.sink is None:
            return None

        try:
            record = response.to_record()
            future = self._get_executor().submit(self.sink, record)
        except Exception as e:
            # e.g. executor already shut down; the trial commit must still go through
            logger.warning("Could not dispatch log for trial %s: %s", getattr(response, "trial_id", "?"), e)
            return None

        future.add_done_callback(lambda f: self._report(record, f))
        return future

    def _report(self, record: dict, future: Future) -> None:
        if future.cancelled():
            logger.warning("Log delivery for trial %s was cancelled", record.get("trialId"))
            return

        error = future.exception()
        if error is None:
            logger.debug("Logged trial %s to %r", record.get("trialId"), self.sink)
            return

        logger.warning("Log delivery for trial %s failed: %s", record.get("trialId"), error)
        if self.on_error is not None:
            try:
                self.on_error(record, error)
            except Exception:
                logger.exception("on_error hook raised")

    def shutdown(self, wait: bool = False) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


def build_event_logger(settings, open_spreadsheet=None) -> EventLogger:
    """Pick the configured sink: webhook first, then the Google Sheet, else off."""
    if settings.log_endpoint:
        return EventLogger(WebhookSink(settings.log_endpoint, settings.log_timeout_sec))
    if settings.sheet_url and open_spreadsheet is not None:
        return EventLogger(SheetSink(open_spreadsheet, settings.sheet_worksheet))
    logger.info("No logging endpoint configured; trial logging disabled")
    return EventLogger(None)
