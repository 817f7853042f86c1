"""Minimal asyncio Language Server Protocol client over a child process's stdio.

Only what reference counting needs: the initialize handshake, document
open/close, ``textDocument/references`` and shutdown. One request is in
flight at a time; the server is a single external process and requests are
never pipelined.
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from sca.analyzer.models import Position
from sca.errors import OracleError

logger = logging.getLogger(__name__)

JSONRPC_VERSION = '2.0'
IGNORED_NOTIFICATIONS = {'textDocument/publishDiagnostics', '$/progress', 'telemetry/event'}


def path_to_uri(path: str | Path) -> str:
    return Path(path).resolve().as_uri()


class LspClient:
    """JSON-RPC client speaking to a language server child process."""

    def __init__(self, process: asyncio.subprocess.Process, workspace_root: Path):
        self.process = process
        self.workspace_folders = [{'name': 'workspace', 'uri': path_to_uri(workspace_root)}]
        self._request_id = 0
        self._lock = asyncio.Lock()
        self._stderr_task: Optional[asyncio.Task] = None
        if process.stderr is not None:
            self._stderr_task = asyncio.create_task(self._drain_stderr())

    @classmethod
    async def start(cls, config) -> 'LspClient':
        """Spawn the configured server and complete the initialize handshake.

        Raises:
            OracleError: If the process cannot be spawned or the handshake fails
        """
        try:
            process = await asyncio.create_subprocess_exec(
                config.lsp_executable,
                *config.lsp_args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(config.project_root_path),
            )
        except OSError as e:
            raise OracleError(f"Failed to spawn {config.lsp_executable}: {e}")

        client = cls(process, config.project_root_path)
        try:
            await client.initialize(config)
        except BaseException:
            await client.close()
            raise
        return client

    async def initialize(self, config) -> Dict[str, Any]:
        params = {
            'processId': os.getpid(),
            'clientInfo': {'name': config.lsp_name, 'version': config.lsp_version},
            'rootUri': None,
            'capabilities': config.lsp_capabilities,
            'initializationOptions': config.initialization_options,
            'workspaceFolders': self.workspace_folders,
        }
        result = await self.request('initialize', params)
        await self.notify('initialized', {})
        await self.notify('workspace/didChangeConfiguration', {'settings': None})
        logger.debug("Language server initialized: %s", (result or {}).get('serverInfo'))
        return result

    async def did_open(self, path: str | Path, text: str, version: int, language_id: str) -> None:
        await self.notify('textDocument/didOpen', {
            'textDocument': {
                'uri': path_to_uri(path),
                'languageId': language_id,
                'version': version,
                'text': text,
            },
        })

    async def did_close(self, path: str | Path) -> None:
        await self.notify('textDocument/didClose', {'textDocument': {'uri': path_to_uri(path)}})

    async def references(self, path: str | Path, position: Position) -> Optional[int]:
        """Count locations referencing the symbol at ``position``, declaration included.

        Returns:
            Number of locations, or None if the server returned no result
        """
        row, column = position
        result = await self.request('textDocument/references', {
            'textDocument': {'uri': path_to_uri(path)},
            'position': {'line': row, 'character': column},
            'context': {'includeDeclaration': True},
        })
        if result is None:
            return None
        if not isinstance(result, list):
            raise OracleError(f"Invalid references response: {result!r}")
        return len(result)

    async def shutdown(self) -> None:
        await self.request('shutdown', None)
        await self.notify('exit', None)
        returncode = await self.process.wait()
        if returncode != 0:
            logger.warning("Language server exited with status %s", returncode)
        await self._stop_stderr()

    async def close(self) -> None:
        """Kill the server if it is still running."""
        if self.process.returncode is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
            await self.process.wait()
        await self._stop_stderr()

    async def request(self, method: str, params: Any) -> Any:
        """Send a request and wait for its response, serving server traffic meanwhile.

        Raises:
            OracleError: On error responses or protocol violations
        """
        async with self._lock:
            self._request_id += 1
            request_id = self._request_id
            await self._write({'jsonrpc': JSONRPC_VERSION, 'id': request_id, 'method': method, 'params': params})

            while True:
                message = await self._read()
                if 'method' in message:
                    if 'id' in message:
                        await self._handle_server_request(message)
                    else:
                        self._handle_notification(message)
                    continue

                if message.get('id') != request_id:
                    logger.debug("Received out of order response for id %s", message.get('id'))
                    continue

                error = message.get('error')
                if error:
                    raise OracleError(f"LSP error {method}: {error.get('message', error)}")
                return message.get('result')

    async def notify(self, method: str, params: Any) -> None:
        await self._write({'jsonrpc': JSONRPC_VERSION, 'method': method, 'params': params})

    async def _write(self, payload: Dict[str, Any]) -> None:
        body = json.dumps(payload).encode('utf-8')
        header = f"Content-Length: {len(body)}\r\n\r\n".encode('ascii')
        try:
            self.process.stdin.write(header + body)
            await self.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise OracleError(f"LSP server stdin closed: {e}")

    async def _read(self) -> Dict[str, Any]:
        stdout = self.process.stdout
        content_length = None

        while True:
            line = await stdout.readline()
            if not line:
                raise OracleError("LSP server closed the stream")
            header = line.decode('ascii', errors='replace').strip()
            if not header:
                break
            name, _, value = header.partition(':')
            if name.strip().lower() == 'content-length':
                try:
                    content_length = int(value.strip())
                except ValueError:
                    raise OracleError(f"Invalid Content-Length: {value.strip()!r}")

        if content_length is None:
            raise OracleError("Missing Content-Length header")

        try:
            body = await stdout.readexactly(content_length)
        except asyncio.IncompleteReadError:
            raise OracleError("LSP server closed the stream mid-message")

        try:
            message = json.loads(body)
        except json.JSONDecodeError as e:
            raise OracleError(f"Invalid JSON payload: {e}")
        if not isinstance(message, dict):
            raise OracleError(f"Unexpected message: {message!r}")
        return message

    def _handle_notification(self, message: Dict[str, Any]) -> None:
        method = message['method']
        if method == 'window/logMessage':
            logger.debug("LSP log: %s", (message.get('params') or {}).get('message'))
        elif method not in IGNORED_NOTIFICATIONS:
            logger.debug("Unhandled LSP notification %s", method)

    async def _handle_server_request(self, message: Dict[str, Any]) -> None:
        method = message['method']
        params = message.get('params') or {}
        if method == 'workspace/configuration':
            result: Any = [None] * len(params.get('items', []))
        elif method == 'workspace/workspaceFolders':
            result = self.workspace_folders
        else:
            if method != 'window/workDoneProgress/create':
                logger.debug("Unhandled LSP server request %s", method)
            result = None
        await self._write({'jsonrpc': JSONRPC_VERSION, 'id': message['id'], 'result': result})

    async def _drain_stderr(self) -> None:
        while True:
            line = await self.process.stderr.readline()
            if not line:
                return
            logger.debug("LSP stderr: %s", line.decode('utf-8', errors='replace').rstrip())

    async def _stop_stderr(self) -> None:
        if self._stderr_task is None:
            return
        task, self._stderr_task = self._stderr_task, None
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

