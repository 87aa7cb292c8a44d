"""Background worker that parses record text and streams progress."""

from __future__ import annotations

import logging
import time

from core.config.settings import PipelineSettings
from core.records.fixed_width import FixedWidthRecordParser
from core.records.models import RecordParser
from core.records.streaming import ParseDone, ParseEarlyStop, ParseProgress, stream_parse
from core.utils.errors import RecordParseError
from core.utils.events import log_event
from core.workers.base import BackgroundWorker
from core.workers.messages import (
    ParseCompleted,
    ParseFailed,
    ParseOutbound,
    ParseProgressed,
    ParseRequest,
    ParseStopped,
)

_logger = logging.getLogger("cuebench.parse")


class ParseWorker(BackgroundWorker[ParseRequest, ParseOutbound]):
    name = "parse"

    def __init__(
        self,
        *,
        parser: RecordParser | None = None,
        settings: PipelineSettings | None = None,
    ) -> None:
        super().__init__()
        self._parser = parser or FixedWidthRecordParser()
        self._settings = settings or PipelineSettings()

    async def handle(self, message: ParseRequest) -> None:
        chunk_lines = message.chunk_lines or self._settings.parse_chunk_lines
        max_records = message.max_records or self._settings.max_records
        started = time.perf_counter()
        log_event(
            _logger,
            logging.INFO,
            "parse.start",
            message.request_id,
            source=message.source,
            chunk_lines=chunk_lines,
            max_records=max_records,
        )

        try:
            async for event in stream_parse(
                message.text,
                message.source,
                parser=self._parser,
                chunk_lines=chunk_lines,
                max_records=max_records,
            ):
                if isinstance(event, ParseProgress):
                    self.emit(ParseProgressed(message.request_id, event.fraction))
                elif isinstance(event, ParseDone):
                    self.emit(ParseCompleted(message.request_id, event.result))
                    log_event(
                        _logger,
                        logging.INFO,
                        "parse.done",
                        message.request_id,
                        records=len(event.result.records),
                        errors=len(event.result.statistics.errors),
                        warnings=len(event.result.statistics.warnings),
                        duration_ms=_elapsed_ms(started),
                    )
                elif isinstance(event, ParseEarlyStop):
                    self.emit(
                        ParseStopped(
                            message.request_id,
                            reason=event.reason,
                            limit=event.limit,
                            records_seen=event.records_seen,
                        )
                    )
                    log_event(
                        _logger,
                        logging.WARNING,
                        "parse.early_stop",
                        message.request_id,
                        limit=event.limit,
                        records_seen=event.records_seen,
                        duration_ms=_elapsed_ms(started),
                    )
        except RecordParseError as exc:
            self.emit(
                ParseFailed(message.request_id, message=str(exc), error_type=type(exc).__name__)
            )
            log_event(
                _logger,
                logging.ERROR,
                "parse.error",
                message.request_id,
                first_line=exc.first_line,
                message=str(exc),
                duration_ms=_elapsed_ms(started),
            )

    def on_failure(self, message: ParseRequest, exc: Exception) -> None:
        self.emit(ParseFailed(message.request_id, message=str(exc), error_type=type(exc).__name__))
        log_event(
            _logger,
            logging.ERROR,
            "parse.error",
            message.request_id,
            message=str(exc),
            error_type=type(exc).__name__,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
