import pytest
import requests
from tenacity import wait_none

from scripts import copy_assets as copier


class FakeResponse:
    def __init__(self, content=b"\x89PNG", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


@pytest.fixture
def dirs(tmp_path):
    return tmp_path / "canonical", [tmp_path / "admin", tmp_path / "demosite"]


def test_existing_canonical_logos_are_copied(dirs, monkeypatch):
    source, destinations = dirs
    source.mkdir()
    for name in copier.REBRAND_LOGOS:
        (source / name).write_bytes(name.encode())

    def no_network(*args, **kwargs):
        raise AssertionError("should not download")

    monkeypatch.setattr(copier, "download_logo", no_network)

    report = copier.copy_assets(destinations, source_dir=source)

    assert report.ok
    assert report.downloaded == []
    assert report.copied == list(copier.REBRAND_LOGOS)
    for destination in destinations:
        for name in copier.REBRAND_LOGOS:
            assert (destination / name).read_bytes() == name.encode()


def test_missing_logo_is_downloaded_then_copied(dirs, monkeypatch):
    source, destinations = dirs
    monkeypatch.setattr(copier, "download_logo", lambda name: b"logo:" + name.encode())

    report = copier.copy_assets(destinations, source_dir=source)

    assert report.downloaded == list(copier.REBRAND_LOGOS)
    white = "department-for-education_white.png"
    assert (source / white).read_bytes() == b"logo:" + white.encode()
    assert (destinations[1] / white).exists()


def test_failed_download_continues_with_next_logo(dirs, monkeypatch):
    source, destinations = dirs
    white, black = copier.REBRAND_LOGOS

    def flaky(name):
        if name == white:
            raise requests.ConnectionError("offline")
        return b"black"

    monkeypatch.setattr(copier, "download_logo", flaky)

    report = copier.copy_assets(destinations, source_dir=source)

    assert not report.ok
    assert report.failed == [white]
    assert report.copied == [black]
    assert not (destinations[0] / white).exists()
    assert (destinations[0] / black).read_bytes() == b"black"


def test_download_retries_then_succeeds(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        if len(calls) < 3:
            return FakeResponse(status_code=503)
        return FakeResponse(content=b"png-bytes")

    monkeypatch.setattr(copier.requests, "get", fake_get)

    content = copier.download_logo.retry_with(wait=wait_none())("department-for-education_white.png")

    assert content == b"png-bytes"
    assert len(calls) == 3
    assert calls[0] == f"{copier.REBRAND_BASE_URL}/department-for-education_white.png"


def test_download_gives_up_after_three_attempts(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(status_code=404)

    monkeypatch.setattr(copier.requests, "get", fake_get)

    with pytest.raises(requests.HTTPError):
        copier.download_logo.retry_with(wait=wait_none())("department-for-education_black.png")
    assert len(calls) == 3


def test_cli_exit_code_reflects_failures(monkeypatch):
    reports = iter([copier.CopyReport(copied=["a"]), copier.CopyReport(failed=["b"])])
    monkeypatch.setattr(copier, "copy_assets", lambda destinations: next(reports))
    monkeypatch.setattr(copier, "setup_logging", lambda: None)

    assert copier.main(["--site", "admin"]) == 0
    assert copier.main([]) == 1
