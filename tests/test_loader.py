"""Tests para los loaders de contenido (filesystem y HTTP)."""

from __future__ import annotations

import datetime
import pathlib

import httpx
import pytest

from dochub.errors import ContentLoadError
from dochub.indexer.loader import FileContentLoader, HttpContentLoader

BASE_URL = "http://docs.local/data-sources"


@pytest.mark.asyncio
async def test_file_loader_reads_text_and_metadata(rich_corpus: pathlib.Path):
    loader = FileContentLoader(rich_corpus)
    loaded = await loader.load("02_Campaign_Core/LaunchStrategy.md")

    assert loaded.text.startswith("# Launch Campaign Strategy")
    assert loaded.metadata.path == "02_Campaign_Core/LaunchStrategy.md"
    assert loaded.metadata.name == "LaunchStrategy.md"
    assert loaded.metadata.category == "campaign-core"
    assert loaded.metadata.size_bytes == (rich_corpus / "02_Campaign_Core/LaunchStrategy.md").stat().st_size
    assert loaded.metadata.last_modified.tzinfo is not None


@pytest.mark.asyncio
async def test_file_loader_default_category(rich_corpus: pathlib.Path):
    loaded = await FileContentLoader(rich_corpus).load("notes.txt")
    assert loaded.metadata.category == "general"


@pytest.mark.asyncio
async def test_file_loader_memoizes_until_cleared(tmp_path: pathlib.Path):
    doc = tmp_path / "a.md"
    doc.write_text("first", encoding="utf-8")
    loader = FileContentLoader(tmp_path)

    assert (await loader.load("a.md")).text == "first"
    doc.write_text("second", encoding="utf-8")
    assert (await loader.load("a.md")).text == "first"

    loader.clear_cache()
    assert (await loader.load("a.md")).text == "second"


@pytest.mark.asyncio
async def test_file_loader_missing_file(tmp_path: pathlib.Path):
    loader = FileContentLoader(tmp_path)
    with pytest.raises(ContentLoadError) as exc_info:
        await loader.load("missing.md")
    assert exc_info.value.path == "missing.md"
    assert not await loader.exists("missing.md")


@pytest.mark.asyncio
async def test_file_loader_rejects_paths_outside_root(tmp_path: pathlib.Path):
    root = tmp_path / "docs"
    root.mkdir()
    (tmp_path / "secret.md").write_text("nope", encoding="utf-8")
    loader = FileContentLoader(root)

    with pytest.raises(ContentLoadError):
        await loader.load("../secret.md")
    assert not await loader.exists("../secret.md")


@pytest.mark.asyncio
async def test_file_loader_exists(rich_corpus: pathlib.Path):
    loader = FileContentLoader(rich_corpus)
    assert await loader.exists("notes.txt")
    assert not await loader.exists("02_Campaign_Core")


@pytest.mark.asyncio
async def test_http_loader_reads_text_and_headers():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            text="# Remote Doc\n",
            headers={"last-modified": "Wed, 01 May 2024 10:00:00 GMT"},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        loader = HttpContentLoader(BASE_URL, client=client)
        loaded = await loader.load("02_Campaign_Core/Launch Plan.md")
        await loader.load("02_Campaign_Core/Launch Plan.md")

    assert len(requests) == 1
    assert requests[0].url.raw_path == b"/data-sources/02_Campaign_Core/Launch%20Plan.md"
    assert loaded.text == "# Remote Doc\n"
    assert loaded.metadata.name == "Launch Plan.md"
    assert loaded.metadata.category == "campaign-core"
    assert loaded.metadata.size_bytes == len(b"# Remote Doc\n")
    assert loaded.metadata.last_modified == datetime.datetime(2024, 5, 1, 10, 0, tzinfo=datetime.timezone.utc)


@pytest.mark.asyncio
async def test_http_loader_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        loader = HttpContentLoader(BASE_URL, client=client)
        with pytest.raises(ContentLoadError):
            await loader.load("missing.md")
        assert not await loader.exists("missing.md")


@pytest.mark.asyncio
async def test_http_loader_exists_uses_head():
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await HttpContentLoader(BASE_URL, client=client).exists("a.md")

    assert methods == ["HEAD"]


@pytest.mark.asyncio
async def test_http_loader_does_not_close_injected_client():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    loader = HttpContentLoader(BASE_URL, client=client)
    await loader.aclose()
    assert not client.is_closed
    await client.aclose()
