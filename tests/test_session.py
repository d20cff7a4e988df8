import asyncio
import logging
import re
import threading

import pytest

from bewijsje import config, session
from bewijsje.prompt import ask_name
from bewijsje.session import (
    DirectoryDownload, download_table, finish_session, proof_filename, try_shared_proof,
)
from bewijsje.summary import normalize_summary


class CollectingDownload:
    def __init__(self):
        self.files = []

    async def __call__(self, data, filename):
        self.files.append((filename, data))


def test_finish_session_end_to_end(identity, eva_session):
    download = CollectingDownload()
    result = asyncio.run(finish_session(eva_session, download=download, identity=identity))

    assert re.fullmatch(r"telrij — Eva — \d{8}-\d{4}\.png", result.filename)
    assert result.image_bytes.startswith(b"\x89PNG")
    assert download.files == [(result.filename, result.image_bytes)]


def test_filename_with_accommodation_and_defaults(identity, now):
    s = normalize_summary({"flags": {"dyscalculie": True}}, identity)
    assert proof_filename(s, now) == "Spel — anoniem (dyscalculie) — 20251027-1405.png"

    s = normalize_summary({"name": "Eva/De:Smet", "gameId": "tel*rij"}, identity)
    assert proof_filename(s, now) == "telrij — EvaDeSmet — 20251027-1405.png"

    s = normalize_summary({"name": "x" * 100, "gameId": "telrij"}, identity)
    assert len(proof_filename(s, now)) == 80


def test_directory_download_writes_file(tmp_path, identity, now):
    result = asyncio.run(finish_session({"name": "Eva", "gameId": "telrij"},
                                        download=DirectoryDownload(tmp_path / "out"),
                                        identity=identity, now=now))
    written = tmp_path / "out" / result.filename
    assert written.read_bytes() == result.image_bytes


def test_download_failure_propagates(identity):
    async def broken(data, filename):
        raise OSError("disk full")

    with pytest.raises(OSError):
        asyncio.run(finish_session({}, download=broken, identity=identity))


def test_download_table_explicit_filename_bypasses_derivation(identity, now):
    download = CollectingDownload()
    result = asyncio.run(download_table(
        {"name": "Eva", "gameId": "telrij"},
        {"columns": ["Som", "Antwoord"], "rows": [["3+4", "7"]]},
        filename="export:klas 2B.png", download=download, identity=identity, now=now))
    assert result.filename == "exportklas 2B.png"
    assert download.files[0][0] == "exportklas 2B.png"


def test_download_table_derived_filename(identity, now):
    download = CollectingDownload()
    result = asyncio.run(download_table({"name": "Eva", "gameId": "telrij"}, None,
                                        download=download, identity=identity, now=now))
    assert result.filename == "telrij — Eva — 20251027-1405.png"


def test_try_shared_proof_without_event_loop_reports_failure(identity, caplog):
    with caplog.at_level(logging.ERROR, logger="bewijsje.session"):
        assert try_shared_proof({}, identity=identity) is False
    assert "Could not launch" in caplog.text


def test_try_shared_proof_launches_and_swallows_failures(identity, caplog):
    async def broken(data, filename):
        raise OSError("disk full")

    async def scenario():
        launched = try_shared_proof({}, download=broken, identity=identity)
        pending = list(session._background)
        await asyncio.gather(*pending, return_exceptions=True)
        await asyncio.sleep(0)
        return launched

    with caplog.at_level(logging.ERROR, logger="bewijsje.session"):
        assert asyncio.run(scenario()) is True
    assert "Background proof export failed" in caplog.text
    assert not session._background


def test_try_shared_proof_delivers_in_background(identity, eva_session):
    download = CollectingDownload()

    async def scenario():
        assert try_shared_proof(eva_session, download=download, identity=identity)
        assert download.files == []   # nothing awaited yet
        await asyncio.gather(*list(session._background))

    asyncio.run(scenario())
    assert len(download.files) == 1


def test_confirmed_name_reaches_the_proof_by_default(default_store_file, monkeypatch):
    monkeypatch.setattr(config, "GAME_ID", "telrij")
    download = CollectingDownload()

    async def scenario():
        def present(prompt):
            prompt.set_name("Sam")
            prompt.set_class("3A")
            prompt.press("Enter")
        await ask_name("taak", present=present)
        return await finish_session({}, download=download)

    result = asyncio.run(scenario())
    assert default_store_file.exists()
    assert re.fullmatch(r"telrij — Sam — \d{8}-\d{4}\.png", result.filename)
    assert normalize_summary({}).klass == "3A"


def test_rendering_runs_in_a_worker_thread(identity, eva_session, monkeypatch):
    threads = []
    build = session.build_certificate

    def recording_build(*args, **kwargs):
        threads.append(threading.get_ident())
        return build(*args, **kwargs)

    monkeypatch.setattr(session, "build_certificate", recording_build)
    loop_thread = threading.get_ident()
    asyncio.run(finish_session(eva_session, download=CollectingDownload(), identity=identity))
    assert threads and threads[0] != loop_thread


def test_try_shared_proof_rejects_non_mapping_up_front(identity, caplog):
    async def scenario():
        launched = try_shared_proof(42, download=CollectingDownload(), identity=identity)
        return launched, list(session._background)

    with caplog.at_level(logging.ERROR, logger="bewijsje.session"):
        launched, pending = asyncio.run(scenario())
    assert launched is False
    assert pending == []
    assert "Could not launch" in caplog.text
