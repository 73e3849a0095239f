"""Unit tests for HubClient."""

import json
from unittest.mock import patch

import httpx
import pytest

from cli.hub_client import HubClient

RECORD = {
    'file_id': 'file-123',
    'original_name': 'test.txt',
    'blob_reference': 'blob-1',
    'location_hint': None,
    'description': 'kickoff notes',
    'owner_id': 'user-1',
    'owner_label': 'alice',
    'created_at': '2024-01-01T00:00:00+00:00',
    'mime_type': 'text/plain',
    'size_bytes': 26,
}


def make_client(config, handler) -> HubClient:
    return HubClient(config, transport=httpx.MockTransport(handler))


@pytest.fixture
def logged_in_config(temp_config):
    temp_config.set_api_key('lsk_test123')
    return temp_config


def test_register_success_saves_key(temp_config):
    def handler(request):
        assert request.url.path == '/auth/register'
        assert json.loads(request.content) == {'username': 'alice', 'password': 'pw'}
        return httpx.Response(201, json={'api_key': 'lsk_new', 'user_id': 'user_abc'})

    result = make_client(temp_config, handler).register('alice', 'pw')

    assert 'Registration successful' in result
    assert 'user_abc' in result
    assert temp_config.get_api_key() == 'lsk_new'


def test_register_duplicate(temp_config):
    def handler(request):
        return httpx.Response(400, json={'detail': 'User exists', 'code': 'USER_ALREADY_EXISTS'})

    result = make_client(temp_config, handler).register('alice', 'pw')

    assert result.startswith('Registration failed')
    assert 'Username already taken' in result
    assert temp_config.get_api_key() is None


def test_login_updates_key(logged_in_config):
    def handler(request):
        return httpx.Response(200, json={'api_key': 'lsk_rotated', 'user_id': 'user_abc'})

    result = make_client(logged_in_config, handler).login('alice', 'pw')

    assert 'Login successful' in result
    assert logged_in_config.get_api_key() == 'lsk_rotated'


def test_login_is_not_retried(temp_config):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, json={'detail': 'down', 'code': 'METADATA_STORE_ERROR'})

    with patch('cli.hub_client.time.sleep') as sleep:
        result = make_client(temp_config, handler).login('alice', 'pw')

    assert result.startswith('Login failed')
    assert len(calls) == 1
    sleep.assert_not_called()


def test_commands_require_login(temp_config):
    def handler(request):
        raise AssertionError("no request expected")

    client = make_client(temp_config, handler)

    assert 'Not logged in' in client.list_files()
    assert 'Not logged in' in client.search('x')
    assert 'Not logged in' in client.list_peers()
    assert 'Not logged in' in client.download('file-123')


def test_upload_streams_file(logged_in_config, sample_file):
    seen = {}

    def handler(request):
        seen['method'] = request.method
        seen['path'] = request.url.path
        seen['params'] = dict(request.url.params)
        seen['headers'] = request.headers
        seen['body'] = request.content
        return httpx.Response(201, json=RECORD)

    result = make_client(logged_in_config, handler).upload(str(sample_file), 'kickoff notes')

    assert result == "Uploaded: test.txt (ID: file-123, Size: 26 B)"
    assert seen['method'] == 'PUT'
    assert seen['path'] == '/files/upload/test.txt'
    assert seen['params'] == {'description': 'kickoff notes'}
    assert seen['headers']['Authorization'] == 'Bearer lsk_test123'
    assert seen['headers']['Content-Type'] == 'text/plain'
    assert seen['body'] == b'Sample content for testing'


def test_upload_quotes_file_name(logged_in_config, tmp_path):
    path = tmp_path / 'my report.pdf'
    path.write_bytes(b'%PDF')
    seen = {}

    def handler(request):
        seen['raw_path'] = request.url.raw_path
        return httpx.Response(201, json={**RECORD, 'original_name': 'my report.pdf', 'size_bytes': 4})

    result = make_client(logged_in_config, handler).upload(str(path))

    assert result.startswith('Uploaded: my report.pdf')
    assert seen['raw_path'] == b'/files/upload/my%20report.pdf'


def test_upload_missing_file(logged_in_config, tmp_path):
    def handler(request):
        raise AssertionError("no request expected")

    result = make_client(logged_in_config, handler).upload(str(tmp_path / 'nope.txt'))

    assert result.startswith('Error: File not found')


def test_upload_is_not_retried(logged_in_config, sample_file):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502, json={'detail': 'quota', 'code': 'UPSTREAM_STORAGE_ERROR'})

    with patch('cli.hub_client.time.sleep'):
        result = make_client(logged_in_config, handler).upload(str(sample_file))

    assert len(calls) == 1
    assert 'Storage provider failed' in result


def test_list_files_formats_records(logged_in_config):
    def handler(request):
        assert request.url.path == '/files'
        return httpx.Response(200, json={'files': [RECORD]})

    result = make_client(logged_in_config, handler).list_files()

    assert 'Found 1 file(s)' in result
    assert 'test.txt (ID: file-123)' in result
    assert 'Uploaded by: alice' in result
    assert 'Description: kickoff notes' in result


def test_list_files_empty_pool(logged_in_config):
    def handler(request):
        return httpx.Response(404, json={'detail': 'No files found', 'code': 'NO_FILES_FOUND'})

    assert make_client(logged_in_config, handler).list_files() == 'Error: No files found.'


def test_search_sends_query(logged_in_config):
    def handler(request):
        assert request.url.path == '/files/search'
        assert request.url.params['query'] == 'kick off'
        return httpx.Response(200, json={'files': [RECORD, {**RECORD, 'file_id': 'file-456'}]})

    assert 'Found 2 file(s)' in make_client(logged_in_config, handler).search('kick off')


def test_expired_key_message(logged_in_config):
    def handler(request):
        return httpx.Response(401, json={'detail': 'Invalid API key', 'code': 'INVALID_API_KEY'})

    result = make_client(logged_in_config, handler).list_files()

    assert 'Please run: login' in result


def test_list_peers(logged_in_config):
    responses = iter([
        {'peers': []},
        {'peers': [{'peer_id': 'desk', 'connection_id': 'c1'}, {'peer_id': 'laptop', 'connection_id': 'c2'}]},
    ])

    def handler(request):
        assert request.url.path == '/peers'
        return httpx.Response(200, json=next(responses))

    client = make_client(logged_in_config, handler)

    assert client.list_peers() == 'No peers online.'
    assert client.list_peers() == '2 peer(s) online:\n  - desk\n  - laptop'


def test_server_errors_are_retried(logged_in_config):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503, json={'detail': 'busy', 'code': 'METADATA_STORE_ERROR'})
        return httpx.Response(200, json={'files': [RECORD]})

    with patch('cli.hub_client.time.sleep') as sleep:
        result = make_client(logged_in_config, handler).list_files()

    assert 'Found 1 file(s)' in result
    assert len(calls) == 3
    assert [c.args[0] for c in sleep.call_args_list] == [1, 2]


def test_connection_failure_after_retries(logged_in_config):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with patch('cli.hub_client.time.sleep'):
        result = make_client(logged_in_config, handler).list_files()

    assert result == 'Error: Cannot connect to hub server. Is it running?'
    assert len(calls) == 4


def test_download_uses_disposition_name(logged_in_config, tmp_path):
    def handler(request):
        assert request.url.path == '/files/download/file-123'
        return httpx.Response(
            200,
            content=b'cv text',
            headers={
                'Content-Type': 'text/plain',
                'Content-Disposition': "attachment; filename=\"resume.txt\"; filename*=UTF-8''r%C3%A9sum%C3%A9.txt",
            },
        )

    result = make_client(logged_in_config, handler).download('file-123', str(tmp_path))

    saved = tmp_path / 'résumé.txt'
    assert saved.read_bytes() == b'cv text'
    assert result.startswith('Downloaded: résumé.txt (7 B)')
    assert str(saved.absolute()) in result


def test_download_defaults_to_downloads_dir(logged_in_config, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def handler(request):
        return httpx.Response(200, content=b'abc', headers={'Content-Disposition': 'attachment; filename="a.txt"'})

    make_client(logged_in_config, handler).download('file-1')

    assert (tmp_path / 'downloads' / 'a.txt').read_bytes() == b'abc'


def test_download_strips_directories_from_name(logged_in_config, tmp_path):
    def handler(request):
        return httpx.Response(
            200,
            content=b'x',
            headers={'Content-Disposition': "attachment; filename*=UTF-8''..%2F..%2Fevil.sh"},
        )

    make_client(logged_in_config, handler).download('file-1', str(tmp_path))

    assert (tmp_path / 'evil.sh').exists()


def test_download_unknown_file(logged_in_config, tmp_path):
    def handler(request):
        return httpx.Response(404, json={'detail': 'File x not found', 'code': 'FILE_NOT_FOUND'})

    out_dir = tmp_path / 'out'
    out_dir.mkdir()

    result = make_client(logged_in_config, handler).download('x', str(out_dir))

    assert result == 'Error: File not found on server.'
    assert list(out_dir.iterdir()) == []
