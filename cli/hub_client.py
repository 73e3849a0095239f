"""HTTP client for communicating with the LanShare hub."""

import mimetypes
import time
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.constants import DOWNLOADS_DIR
from cli.utils import (
    end_progress,
    filename_from_disposition,
    format_file_size,
    iter_file_with_progress,
    show_progress,
)

logger = get_logger(__name__)

ERROR_MESSAGES = {
    'INVALID_INPUT': 'Request is missing a file, a name or a query.',
    'INVALID_API_KEY': 'Not authenticated. Please run: login <username> <password>',
    'USER_ALREADY_EXISTS': 'Username already taken. Try logging in or choose a different username.',
    'INVALID_CREDENTIALS': 'Invalid username or password.',
    'FILE_NOT_FOUND': 'File not found on server.',
    'NO_FILES_FOUND': 'No files found.',
    'BLOB_NOT_FOUND': 'The file is listed but its content is gone from storage.',
    'UPSTREAM_STORAGE_ERROR': 'Storage provider failed. Please try again later.',
    'METADATA_PERSIST_ERROR': 'File was stored but could not be recorded. Please upload it again.',
    'METADATA_STORE_ERROR': 'File index is unavailable. Please try again later.',
}

STATUS_MESSAGES = {
    400: 'Bad request',
    401: 'Not authenticated',
    404: 'Not found',
    422: 'Invalid request',
    500: 'Server error',
    502: 'Storage provider error',
    503: 'Service unavailable',
}


class HubClient:
    """HTTP client for the hub API with retry logic and error handling."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize hub client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized HubClient [base_url={config.get_base_url()}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Only idempotent requests should go through here with retries enabled.

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )
                break

            logger.debug(
                f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
            )

            if response.status_code >= 500 and attempt < max_retries:
                delay = backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                )
                time.sleep(delay)
                continue

            return response

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to hub server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text or 'Unknown error'
            code = 'UNKNOWN'

        if code in ERROR_MESSAGES:
            return ERROR_MESSAGES[code]

        message = STATUS_MESSAGES.get(response.status_code, str(detail))
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _get_auth_header(self) -> dict:
        """
        Raises:
            ValueError: If no API key is configured
        """
        api_key = self.config.get_api_key()
        if not api_key:
            raise ValueError("Not logged in. Please run: login <username> <password>")
        return {'Authorization': f'Bearer {api_key}'}

    def register(self, username: str, password: str) -> str:
        logger.info(f"Attempting to register user: {username}")
        try:
            response = self._request_with_retry(
                'POST',
                '/auth/register',
                max_retries=0,
                json={'username': username, 'password': password}
            )
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 201:
            logger.warning(f"Registration failed for user: {username} status={response.status_code}")
            return f"Registration failed: {self._format_error(response)}"

        data = response.json()
        self.config.set_api_key(data['api_key'])
        logger.info(f"Registration successful for user: {username} [user_id={data['user_id']}]")
        return f"Registration successful!\nUser ID: {data['user_id']}\nAPI key saved to config."

    def login(self, username: str, password: str) -> str:
        logger.info(f"Attempting to login user: {username}")
        try:
            response = self._request_with_retry(
                'POST',
                '/auth/login',
                max_retries=0,
                json={'username': username, 'password': password}
            )
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            logger.warning(f"Login failed for user: {username} status={response.status_code}")
            return f"Login failed: {self._format_error(response)}"

        self.config.set_api_key(response.json()['api_key'])
        logger.info(f"Login successful for user: {username}")
        return "Login successful!\nAPI key updated in config."

    def upload(self, file_path: str, description: Optional[str] = None) -> str:
        """
        Stream a local file to the hub.

        The request body is read from disk as it is sent. Uploads are never
        retried: a retry would need the whole body again.

        Args:
            file_path: Path of the file to upload
            description: Optional searchable description

        Returns:
            Formatted result message
        """
        try:
            headers = self._get_auth_header()
        except ValueError as e:
            return f"Error: {e}"

        path = Path(file_path).expanduser()
        if not path.is_file():
            return f"Error: File not found: {file_path}"

        mime_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
        headers.update({
            'Content-Type': mime_type,
            'Content-Length': str(path.stat().st_size),
        })
        params = {'description': description} if description else None

        logger.info(f"Uploading {path} ({mime_type})")
        try:
            response = self.session.put(
                f"/files/upload/{quote(path.name, safe='')}",
                content=iter_file_with_progress(path),
                headers=headers,
                params=params,
                timeout=None,
            )
        except httpx.ConnectError:
            return f"Error uploading {file_path}: Cannot connect to hub server"
        except httpx.HTTPError as e:
            return f"Error uploading {file_path}: {e}"
        except OSError as e:
            return f"Error reading {file_path}: {e}"

        if response.status_code != 201:
            return f"Error uploading {file_path}: {self._format_error(response)}"

        record = response.json()
        return (
            f"Uploaded: {record['original_name']} "
            f"(ID: {record['file_id']}, Size: {format_file_size(record['size_bytes'])})"
        )

    def _format_records(self, files: list) -> str:
        output = [f"Found {len(files)} file(s):\n"]
        for record in files:
            lines = [
                f"  - {record['original_name']} (ID: {record['file_id']})",
                f"    Size: {format_file_size(record.get('size_bytes', 0))}",
                f"    Uploaded by: {record.get('owner_label') or record['owner_id']}",
            ]
            if record.get('description'):
                lines.append(f"    Description: {record['description']}")
            lines.append(f"    Created: {record['created_at']}")
            output.append('\n'.join(lines))
        return '\n'.join(output)

    def _get_records(self, endpoint: str, params: Optional[dict] = None) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry('GET', endpoint, headers=headers, params=params)
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"
        return self._format_records(response.json()['files'])

    def list_files(self) -> str:
        return self._get_records('/files')

    def search(self, query: str) -> str:
        return self._get_records('/files/search', params={'query': query})

    def list_peers(self) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry('GET', '/peers', headers=headers)
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        peers = response.json()['peers']
        if not peers:
            return "No peers online."
        lines = [f"{len(peers)} peer(s) online:"]
        lines.extend(f"  - {peer['peer_id']}" for peer in peers)
        return '\n'.join(lines)

    def _resolve_output(self, output_path: Optional[str], file_name: str) -> Path:
        if output_path:
            target = Path(output_path).expanduser()
            if target.is_dir():
                target = target / file_name
        else:
            target = Path.cwd() / DOWNLOADS_DIR / file_name
        target.parent.mkdir(parents=True, exist_ok=True)
        return target

    def download(self, file_id: str, output_path: Optional[str] = None) -> str:
        """
        Download a file by id, writing it to disk as it arrives.

        Args:
            file_id: Id of the file to download
            output_path: File or directory to save into (defaults to downloads/<original name>)

        Returns:
            Success message with download details
        """
        try:
            headers = self._get_auth_header()
        except ValueError as e:
            return f"Error: {e}"

        target = None
        try:
            with self.session.stream('GET', f"/files/download/{quote(file_id, safe='')}", headers=headers) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                file_name = filename_from_disposition(response.headers.get('Content-Disposition')) or file_id
                target = self._resolve_output(output_path, file_name)
                total_size = int(response.headers.get('Content-Length', 0))
                downloaded = 0

                with open(target, 'wb') as f:
                    for piece in response.iter_bytes():
                        f.write(piece)
                        downloaded += len(piece)
                        show_progress("Downloading", file_name, downloaded, total_size)
                end_progress()

        except httpx.ConnectError:
            return "Error: Cannot connect to hub server. Is it running?"
        except httpx.HTTPError as e:
            if target is not None and target.exists():
                target.unlink()
            return f"Error: Download interrupted: {e}"
        except OSError as e:
            return f"Error writing file: {e}"

        return f"Downloaded: {file_name} ({format_file_size(downloaded)})\nSaved to: {target.absolute()}"

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
