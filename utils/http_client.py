"""Small JSON-over-HTTP client for the aquarium controller.

Embedded web servers drop connections and answer 503 while busy, so every
GET is retried a few times with exponential backoff before giving up.
"""
import time
import logging
import requests

logger = logging.getLogger("reefmonitor.http")


class APIError(Exception):
    """Device request failed: transport error, bad status, or non-JSON body."""
    def __init__(self, message, status_code=None, response_body=None, source=None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.source = source


class HTTPClient:
    RETRYABLE_STATUS = {429, 500, 502, 503, 504}

    def __init__(self, base_url, timeout=5, max_retries=2, backoff=0.5, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "ReefMonitor/1.0", "Accept": "application/json"})

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}" if path else self.base_url

    def get(self, path="", params=None):
        """GET `path` and return the decoded JSON body. Raises APIError."""
        url = self.url_for(path)
        attempts = self.max_retries + 1
        error = None

        for attempt in range(attempts):
            if attempt:
                delay = self.backoff * (2 ** (attempt - 1))
                logger.debug(f"Retrying {url} in {delay:.2f}s ({error})")
                time.sleep(delay)
            try:
                resp = self.session.request("GET", url, params=params, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logger.warning(f"{url} unreachable: {e} (attempt {attempt + 1}/{attempts})")
                error = APIError(str(e), source=self.base_url)
                continue

            logger.debug(f"GET {url} → {resp.status_code}")
            if resp.status_code == 200:
                return self._decode(resp, url)

            error = APIError(f"HTTP {resp.status_code} from {url}", status_code=resp.status_code,
                             response_body=resp.text, source=self.base_url)
            if resp.status_code not in self.RETRYABLE_STATUS:
                raise error
            logger.warning(f"Device busy ({resp.status_code}) at {url} (attempt {attempt + 1}/{attempts})")

        raise error

    def _decode(self, resp, url):
        try:
            return resp.json()
        except ValueError:
            raise APIError(f"Invalid JSON from {url}", status_code=resp.status_code,
                           response_body=resp.text, source=self.base_url)
