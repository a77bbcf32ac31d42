from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from quizbank.quizzer import (
    EmptyBankError,
    FetchError,
    MalformedBankError,
    fetch_bank,
    load_bank,
)
from quizbank.quizzer.loader import is_remote


@dataclass
class FakeResponse:
    text: str = ""
    status_code: int = 200
    reason: str = "OK"
    @property
    def content(self) -> bytes:
        return self.text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400


@dataclass
class FakeHTTP:
    response: FakeResponse | None = None
    error: Exception | None = None
    calls: list[tuple[str, Any]] = field(default_factory=list)

    def get(self, url: str, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


def test_load_bank_from_file(write_bank, grouped_questions):
    path = write_bank(grouped_questions)

    records = asyncio.run(load_bank(str(path)))

    assert len(records) == 4
    assert records[0].source_group == "Limits"


def test_load_bank_accepts_file_uri_and_bom(tmp_path, flat_questions):
    path = tmp_path / "bom.json"
    path.write_text(
        "\ufeff" + json.dumps(flat_questions), encoding="utf-8"
    )

    records = asyncio.run(load_bank(f"file://{path}"))

    assert [r.answer for r in records] == ["A", "B", "A"]


def test_missing_file_is_a_fetch_error(tmp_path):
    with pytest.raises(FetchError, match="file not found") as excinfo:
        asyncio.run(fetch_bank(str(tmp_path / "nope.json")))

    assert excinfo.value.source.endswith("nope.json")


def test_directory_source_is_a_fetch_error(tmp_path):
    with pytest.raises(FetchError):
        asyncio.run(fetch_bank(str(tmp_path)))


def test_invalid_json_is_malformed(tmp_path):
    path = tmp_path / "commented.json"
    path.write_text('[{"content": "x", // note\n}]', encoding="utf-8")

    with pytest.raises(MalformedBankError, match="not valid JSON"):
        asyncio.run(load_bank(str(path)))


def test_empty_bank_is_rejected(write_bank):
    path = write_bank([])

    with pytest.raises(EmptyBankError):
        asyncio.run(load_bank(str(path)))


def test_load_bank_over_http(flat_questions):
    http = FakeHTTP(FakeResponse(text=json.dumps(flat_questions)))

    records = asyncio.run(
        load_bank("https://example.test/part1.json", timeout=5, http=http)
    )

    assert len(records) == 3
    assert http.calls == [("https://example.test/part1.json", 5)]


def test_http_failure_status_is_fetch_error():
    http = FakeHTTP(FakeResponse(status_code=404, reason="Not Found"))

    with pytest.raises(FetchError, match="HTTP 404 Not Found"):
        asyncio.run(fetch_bank("http://example.test/missing.json", http=http))
    assert len(http.calls) == 1


def test_http_connection_error_is_fetch_error_without_retry():
    http = FakeHTTP(error=requests.ConnectionError("refused"))

    with pytest.raises(FetchError, match="refused"):
        asyncio.run(fetch_bank("http://example.test/bank.json", http=http))
    assert len(http.calls) == 1


def test_default_client_is_requests(monkeypatch, flat_questions):
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        return FakeResponse(text=json.dumps(flat_questions))

    monkeypatch.setattr(requests, "get", fake_get)

    raw = asyncio.run(fetch_bank("https://example.test/x.json"))

    assert raw == flat_questions
    assert calls == ["https://example.test/x.json"]


def test_load_bank_logs_outcome(write_bank, flat_questions, caplog):
    logger = logging.getLogger("tests.loader")
    path = write_bank(flat_questions)

    with caplog.at_level(logging.INFO, logger="tests.loader"):
        asyncio.run(load_bank(str(path), logger=logger))
        with pytest.raises(FetchError):
            asyncio.run(load_bank(str(path) + ".missing", logger=logger))

    messages = [record.getMessage() for record in caplog.records]
    assert "Loaded 3 questions." in messages
    assert "Failed to load question bank" in messages


@pytest.mark.parametrize(
    "source, expected",
    [
        ("https://x/y.json", True),
        ("HTTP://x/y.json", True),
        ("./bank.json", False),
        ("file:///tmp/bank.json", False),
    ],
)
def test_is_remote(source, expected):
    assert is_remote(source) is expected


def _real_response(body: bytes, content_type: str) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response.reason = "OK"
    response.headers["Content-Type"] = content_type
    response._content = body
    response.encoding = requests.utils.get_encoding_from_headers(
        response.headers
    )
    return response


@pytest.mark.parametrize("prefix", [b"", b"\xef\xbb\xbf"])
def test_remote_utf8_bank_served_as_text_plain(grouped_questions, prefix):
    body = prefix + json.dumps(grouped_questions, ensure_ascii=False).encode(
        "utf-8"
    )
    response = _real_response(body, "text/plain")
    assert response.encoding == "ISO-8859-1"
    http = FakeHTTP(response=response)

    records = asyncio.run(
        load_bank("https://example.test/limits.json", http=http)
    )

    assert records[0].options[0] == "（A）处处为零"
    assert records[0].source_group == "Limits"


def test_remote_bank_that_is_not_utf8_is_fetch_error():
    response = _real_response(b'["\xff\xfe"]', "application/json")
    http = FakeHTTP(response=response)

    with pytest.raises(FetchError, match="not UTF-8"):
        asyncio.run(fetch_bank("https://example.test/bad.json", http=http))
