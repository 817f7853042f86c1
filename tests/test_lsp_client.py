"""Tests for the stdio language server client against a scripted server."""
import asyncio

import pytest

from sca.analyzer.models import Position
from sca.errors import OracleError
from sca.lsp.client import LspClient, path_to_uri

from conftest import USER_TS, make_config


def run_session(config, scenario):
    """Start a client, run ``scenario(client)`` and always stop the server."""
    async def session():
        client = await LspClient.start(config)
        try:
            result = await scenario(client)
        except BaseException:
            await client.close()
            raise
        await client.shutdown()
        return result, client.process.returncode

    return asyncio.run(session())


@pytest.fixture
def user_file(ts_project):
    return ts_project / 'src' / 'user.ts'


class TestHandshake:

    def test_start_and_shutdown(self, ts_project):
        async def scenario(client):
            return client.workspace_folders

        folders, returncode = run_session(make_config(ts_project), scenario)

        assert folders == [{'name': 'workspace', 'uri': ts_project.resolve().as_uri()}]
        assert returncode == 0

    def test_missing_executable(self, ts_project):
        config = make_config(ts_project, lsp_executable=str(ts_project / 'no-such-server'), lsp_args=[])
        with pytest.raises(OracleError, match="Failed to spawn"):
            asyncio.run(LspClient.start(config))

    def test_initialize_error(self, ts_project, monkeypatch):
        monkeypatch.setenv('FAKE_LSP_MODE', 'init-error')
        with pytest.raises(OracleError, match="cannot initialize"):
            asyncio.run(LspClient.start(make_config(ts_project)))

    def test_server_crash_surfaces_as_oracle_error(self, ts_project, user_file, monkeypatch):
        monkeypatch.setenv('FAKE_LSP_MODE', 'crash')

        async def scenario(client):
            return await client.references(user_file, Position(0, 10))

        with pytest.raises(OracleError):
            run_session(make_config(ts_project), scenario)


class TestReferences:

    def test_counts_include_declaration(self, ts_project, user_file):
        async def scenario(client):
            await client.did_open(user_file, USER_TS, 1, 'typescript')
            counts = [
                await client.references(user_file, Position(0, 10)),
                await client.references(user_file, Position(1, 2)),
                await client.references(user_file, Position(3, 2)),
            ]
            await client.did_close(user_file)
            return counts

        counts, _ = run_session(make_config(ts_project), scenario)

        # User: declaration + annotation, name: declaration + initializer, unused: declaration
        assert counts == [2, 2, 1]

    def test_null_result_is_none(self, ts_project, user_file):
        async def scenario(client):
            await client.did_open(user_file, USER_TS, 1, 'typescript')
            return await client.references(user_file, Position(40, 0))

        result, _ = run_session(make_config(ts_project), scenario)
        assert result is None

    def test_closed_document_is_forgotten(self, ts_project, user_file):
        async def scenario(client):
            await client.did_open(user_file, USER_TS, 1, 'typescript')
            await client.did_close(user_file)
            return await client.references(user_file, Position(1, 2))

        result, _ = run_session(make_config(ts_project), scenario)
        assert result is None


def test_path_to_uri_is_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert path_to_uri('src/a.ts') == (tmp_path / 'src' / 'a.ts').resolve().as_uri()
