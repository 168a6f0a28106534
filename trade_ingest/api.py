"""FastAPI service exposing the trade CSV parser.

Endpoints:
  GET  /health          - liveness + version
  POST /parse           - full parse result (rows, errors, mappings)
  POST /parse/records   - insert-ready trade records for valid rows
  GET  /sample-csv      - template export users can start from

The service is stateless: the client sends CSV text, gets JSON back.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from trade_ingest import __version__
from trade_ingest.parsers import CSVParseResult, CSVStructureError, TradeCSVParser, generate_sample_csv
from trade_ingest.parsers.export import deduplicate, to_trade_records
from trade_ingest.settings import load_settings

SETTINGS = load_settings()

logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Trade Ingest",
    description="Normalizes broker trade-history CSV exports into canonical trade records",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

_parser = TradeCSVParser(default_timezone=SETTINGS.default_timezone)


def _too_large(size: int) -> JSONResponse:
    logger.warning("[API] Rejected %d-byte upload (limit %d)", size, SETTINGS.max_upload_bytes)
    return JSONResponse(
        {"error": f"CSV exceeds {SETTINGS.max_upload_bytes} bytes"}, status_code=413,
    )


@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    """Refuse oversized bodies from Content-Length before they are read."""
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > SETTINGS.max_upload_bytes:
        return _too_large(int(length))
    return await call_next(request)


class ParseRequest(BaseModel):
    csv_text: str
    timezone: Optional[str] = None


class RecordsResponse(BaseModel):
    records: list[dict[str, Any]]
    validCount: int
    invalidCount: int
    skippedCount: int
    duplicateCount: int


def _run_parse(req: ParseRequest) -> CSVParseResult | JSONResponse:
    # Chunked bodies carry no Content-Length; check the decoded CSV as well
    size = len(req.csv_text.encode("utf-8"))
    if size > SETTINGS.max_upload_bytes:
        return _too_large(size)
    try:
        return _parser.parse(req.csv_text, timezone_hint=req.timezone)
    except CSVStructureError as e:
        return JSONResponse({"error": e.message}, status_code=422)


@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "version": __version__}


@app.post("/parse")
def parse(req: ParseRequest) -> JSONResponse:
    result = _run_parse(req)
    if isinstance(result, JSONResponse):
        return result
    return JSONResponse(result.to_dict())


@app.post("/parse/records", response_model=RecordsResponse)
def parse_records(req: ParseRequest) -> Any:
    result = _run_parse(req)
    if isinstance(result, JSONResponse):
        return result
    records = to_trade_records(result)
    unique = deduplicate(records)
    return RecordsResponse(
        records=unique,
        validCount=result.valid_count,
        invalidCount=result.invalid_count,
        skippedCount=result.skipped_count,
        duplicateCount=len(records) - len(unique),
    )


@app.get("/sample-csv", response_class=PlainTextResponse)
def sample_csv() -> PlainTextResponse:
    return PlainTextResponse(
        generate_sample_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sample_trades.csv"'},
    )
