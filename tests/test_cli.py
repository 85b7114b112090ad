from __future__ import annotations

import json

from typer.testing import CliRunner

from fetchable_image.cli import app
from fetchable_image.fetch import ImageFetcher, ImageFetchError
from fetchable_image.storage import derive_cache_key

IMAGE_URL = "https://example.com/a.png"


def _dirs(tmp_path) -> list[str]:
    return [
        "--caches-dir",
        str(tmp_path / "caches"),
        "--documents-dir",
        str(tmp_path / "documents"),
    ]


def _fake_downloads(monkeypatch, payloads: dict[str, bytes]) -> list[str]:
    calls: list[str] = []

    def _fake_download(self, url: str) -> bytes:
        calls.append(url)
        if url not in payloads:
            raise ImageFetchError(url, "http error status=404", status_code=404)
        return payloads[url]

    monkeypatch.setattr(ImageFetcher, "download", _fake_download)
    return calls


def test_cli_fetch_downloads_then_reads_cache(monkeypatch, tmp_path) -> None:
    calls = _fake_downloads(monkeypatch, {IMAGE_URL: b"png-bytes"})
    runner = CliRunner()
    out = tmp_path / "out" / "a.png"

    first = runner.invoke(app, ["fetch", IMAGE_URL, "--out", str(out), *_dirs(tmp_path)])
    second = runner.invoke(app, ["fetch", IMAGE_URL, *_dirs(tmp_path)])

    assert first.exit_code == 0
    assert "source=network bytes=9 stored=True" in first.output
    assert out.read_bytes() == b"png-bytes"
    assert second.exit_code == 0
    assert "source=cache" in second.output
    assert calls == [IMAGE_URL]
    assert (tmp_path / "caches" / derive_cache_key(IMAGE_URL)).exists()


def test_cli_fetch_failure_exits_nonzero(monkeypatch, tmp_path) -> None:
    _fake_downloads(monkeypatch, {})
    runner = CliRunner()

    result = runner.invoke(app, ["fetch", IMAGE_URL, "--no-local-storage", *_dirs(tmp_path)])

    assert result.exit_code == 1
    assert "network_failure" in result.output


def test_cli_fetch_batch_reports_progress(monkeypatch, tmp_path) -> None:
    urls = ["https://example.com/1.png", "https://example.com/2.png"]
    _fake_downloads(monkeypatch, {url: b"img" for url in urls})
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("# seed images\n" + "\n".join(urls) + "\n\n", encoding="utf-8")
    out_dir = tmp_path / "batch"
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "fetch-batch",
            "--urls-file",
            str(urls_file),
            "--out-dir",
            str(out_dir),
            "--documents",
            *_dirs(tmp_path),
        ],
    )

    assert result.exit_code == 0
    assert result.output.index("[1/2]") < result.output.index("[2/2]")
    assert "fetched=2 failed=0 total=2" in result.output
    assert (out_dir / "0.bin").read_bytes() == b"img"
    assert (tmp_path / "documents" / derive_cache_key(urls[1])).exists()


def test_cli_save_path_and_delete(tmp_path) -> None:
    source = tmp_path / "local.png"
    source.write_bytes(b"local image")
    runner = CliRunner()

    saved = runner.invoke(app, ["save", str(source), "--name", "logo.png", *_dirs(tmp_path)])
    path = runner.invoke(app, ["path", "--name", "logo.png", *_dirs(tmp_path)])
    deleted = runner.invoke(app, ["delete", "--name", "logo.png", *_dirs(tmp_path)])
    deleted_again = runner.invoke(app, ["delete", "--name", "logo.png", *_dirs(tmp_path)])

    assert saved.exit_code == 0
    assert path.exit_code == 0
    assert str(tmp_path / "caches" / "logo.png") in path.output
    assert deleted.exit_code == 0
    assert "deleted" in deleted.output
    assert deleted_again.exit_code == 1
    assert "not_found" in deleted_again.output


def test_cli_save_rejects_path_like_name(tmp_path) -> None:
    source = tmp_path / "local.png"
    source.write_bytes(b"local image")
    runner = CliRunner()

    result = runner.invoke(app, ["save", str(source), "--name", "../escape.png", *_dirs(tmp_path)])

    assert result.exit_code == 1
    assert not (tmp_path / "escape.png").exists()


def test_cli_path_for_url_uses_config_file(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps({"storage": {"caches_dir": str(tmp_path / "from-config")}}),
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(app, ["path", IMAGE_URL, "--config", str(config_path)])

    assert result.exit_code == 0
    assert str(tmp_path / "from-config" / derive_cache_key(IMAGE_URL)) in result.output


def test_cli_delete_batch(monkeypatch, tmp_path) -> None:
    urls = ["https://example.com/1.png", "https://example.com/2.png"]
    _fake_downloads(monkeypatch, {urls[0]: b"img"})
    runner = CliRunner()
    runner.invoke(app, ["fetch", urls[0], *_dirs(tmp_path)])
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("\n".join(urls), encoding="utf-8")

    result = runner.invoke(app, ["delete-batch", "--urls-file", str(urls_file), *_dirs(tmp_path)])

    assert result.exit_code == 0
    assert "deleted=1 missing=1 total=2" in result.output


def test_cli_fetch_batch_exits_nonzero_when_an_item_fails(monkeypatch, tmp_path) -> None:
    urls = ["https://example.com/missing.png", "https://example.com/ok.png"]
    _fake_downloads(monkeypatch, {urls[1]: b"img"})
    urls_file = tmp_path / "urls.txt"
    urls_file.write_text("\n".join(urls), encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["fetch-batch", "--urls-file", str(urls_file), *_dirs(tmp_path)])

    assert result.exit_code == 1
    assert "[2/2]" in result.output
    assert "fetched=1 failed=1 total=2" in result.output


def test_cli_fetch_batch_help_mentions_exit_code() -> None:
    result = CliRunner().invoke(app, ["fetch-batch", "--help"])

    assert result.exit_code == 0
    assert "code 1" in result.output
