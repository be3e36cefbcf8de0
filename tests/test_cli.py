import json
import logging

import httpx

from blogdigest import cli
from blogdigest.client import SummaryServiceClient


def _payload(**overrides):
    payload = {
        "id": 1,
        "blog_url": "https://example.com/post",
        "title": "A Post",
        "summary_english": "Short summary.",
        "summary_urdu": "مختصر خلاصہ",
        "created_at": "2024-01-01T00:00:00Z",
        "word_count": 42,
    }
    payload.update(overrides)
    return payload


def _patch_service(monkeypatch, handler, real_logging=False):
    for name in ("BD_SERVICE_URL", "BD_SERVICE_ENDPOINT", "BD_SERVICE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    calls = []

    def recording(request):
        calls.append(request)
        return handler(request)

    def factory(service_config, logger=None):
        return SummaryServiceClient(
            service_config, transport=httpx.MockTransport(recording), logger=logger
        )

    monkeypatch.setattr(cli, "SummaryServiceClient", factory)
    if not real_logging:
        monkeypatch.setattr(
            cli, "configure_logging", lambda name, default_level="INFO": logging.getLogger("test")
        )
    return calls


def test_summarize_prints_progress_and_summary(monkeypatch, capsys):
    _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload(author="Sana")))

    code = cli.main(["summarize", "https://example.com/post"])

    out = capsys.readouterr().out
    assert code == 0
    assert "[~] Scraping blog content - extracting content" in out
    assert "[x] Scraping blog content - content extracted" in out
    assert "[x] Generating summary - summary generated" in out
    assert "[x] Translating to Urdu - translation completed" in out
    assert out.index("[~] Scraping") < out.index("[x] Generating summary")
    assert "A Post" in out
    assert "by Sana" in out
    assert "Short summary." in out
    assert "مختصر خلاصہ" not in out


def test_summarize_prints_translation_when_requested(monkeypatch, capsys):
    _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload()))

    code = cli.main(["summarize", "https://example.com/post", "--translation"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Urdu translation:" in out
    assert "مختصر خلاصہ" in out


def test_summarize_reports_remote_failure(monkeypatch, capsys):
    _patch_service(monkeypatch, lambda request: httpx.Response(500, json={"error": "rate limited"}))

    code = cli.main(["summarize", "https://example.com/post"])

    captured = capsys.readouterr()
    assert code == 1
    assert "[!] Scraping blog content - rate limited" in captured.out
    assert "Error: rate limited" in captured.err


def test_summarize_rejects_invalid_url(monkeypatch, capsys):
    calls = _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload()))

    code = cli.main(["summarize", "not a url"])

    captured = capsys.readouterr()
    assert code == 2
    assert "Please enter a valid URL" in captured.err
    assert calls == []


def test_summarize_json_output(monkeypatch, capsys):
    _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload()))

    code = cli.main(["summarize", "https://example.com/post", "--json"])

    snapshot = json.loads(capsys.readouterr().out)
    assert code == 0
    assert snapshot["result"]["word_count"] == 42
    assert [stage["status"] for stage in snapshot["stages"]] == ["completed"] * 3


def test_summarize_uses_config_file(tmp_path, monkeypatch, capsys):
    calls = _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload()))
    config_path = tmp_path / "blogdigest.yml"
    config_path.write_text(
        "service:\n  base_url: https://digest.example.org\npipeline:\n  target_language: French\n",
        encoding="utf-8",
    )

    code = cli.main(["summarize", "https://example.com/post", "--config", str(config_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert str(calls[0].url) == "https://digest.example.org/api/summarize"
    assert "[x] Translating to French - translation completed" in out


def test_summarize_bad_config_exits_with_usage_error(tmp_path, monkeypatch, capsys):
    _patch_service(monkeypatch, lambda request: httpx.Response(200, json=_payload()))
    config_path = tmp_path / "blogdigest.yml"
    config_path.write_text("service:\n  timeout_seconds: soon\n", encoding="utf-8")

    code = cli.main(["summarize", "https://example.com/post", "--config", str(config_path)])

    assert code == 2
    assert "config.service.timeout_seconds must be a number" in capsys.readouterr().err


def test_config_show_prints_effective_config(monkeypatch, capsys):
    monkeypatch.setattr(cli, "configure_logging", lambda name, default_level="INFO": logging.getLogger("test"))
    monkeypatch.setenv("BD_SERVICE_URL", "https://digest.example.org")

    code = cli.main(["config", "show"])

    out = capsys.readouterr().out
    assert code == 0
    assert "base_url: https://digest.example.org" in out
    assert "target_language: Urdu" in out


def test_summarize_json_output_stays_parseable_when_run_fails(monkeypatch, capsys):
    _patch_service(
        monkeypatch,
        lambda request: httpx.Response(500, json={"error": "rate limited"}),
        real_logging=True,
    )
    monkeypatch.delenv("BD_LOG_FILE", raising=False)
    monkeypatch.delenv("BD_LOG_LEVEL", raising=False)

    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        code = cli.main(["summarize", "https://example.com/post", "--json"])
    finally:
        root.handlers = original_handlers
        root.setLevel(original_level)

    captured = capsys.readouterr()
    snapshot = json.loads(captured.out)
    assert code == 1
    assert snapshot["error"] == "rate limited"
    assert snapshot["stages"][0]["status"] == "errored"
    assert "event=summary_request_rejected" in captured.err
    assert "event=run_failed" in captured.err
