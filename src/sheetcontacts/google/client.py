"""Google Sheets API client with OAuth2."""

import http.server
import urllib.parse
import webbrowser

import httpx

from sheetcontacts.config import Settings
from sheetcontacts.exceptions import GoogleAuthError, SheetsAPIError

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"


def quote_range(a1_range: str) -> str:
    """Escape an A1 range for use in a URL path."""
    return urllib.parse.quote(a1_range, safe="")


class GoogleSheetsClient:
    """Client for Google Sheets API v4 using OAuth2."""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(self, settings: Settings):
        self.settings = settings
        self._access_token: str | None = None
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(timeout=30.0)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()

    def _refresh_token(self) -> str:
        """Refresh access token using refresh token."""
        if not self.settings.google_refresh_token:
            raise GoogleAuthError(
                "No refresh token configured. Run 'sheet-contacts auth' first."
            )

        client = self._get_client()

        try:
            response = client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.settings.google_client_id,
                    "client_secret": self.settings.google_client_secret,
                    "grant_type": "refresh_token",
                    "refresh_token": self.settings.google_refresh_token,
                },
            )

            if response.status_code != 200:
                raise GoogleAuthError(
                    f"Token refresh failed ({response.status_code}): {response.text}"
                )

            data = response.json()
            self._access_token = data["access_token"]
            return self._access_token

        except httpx.HTTPError as e:
            raise GoogleAuthError(f"Token refresh request failed: {e}") from e

    def _get_access_token(self) -> str:
        """Get valid access token, refreshing if needed."""
        if self._access_token is None:
            return self._refresh_token()
        return self._access_token

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> dict:
        """Make authenticated API request."""
        client = self._get_client()
        token = self._get_access_token()

        try:
            response = client.request(
                method,
                f"{GOOGLE_SHEETS_API_BASE}{endpoint}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )

            if response.status_code == 401:
                # Token expired, refresh and retry
                token = self._refresh_token()
                response = client.request(
                    method,
                    f"{GOOGLE_SHEETS_API_BASE}{endpoint}",
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )

            if response.status_code >= 400:
                raise SheetsAPIError(response.status_code, response.text)

            return response.json()

        except httpx.HTTPError as e:
            raise SheetsAPIError(0, f"request failed: {e}") from e

    def authorize(self, port: int = 8000) -> dict:
        """
        Run OAuth flow to get new tokens with the spreadsheets scope.

        Opens browser for user authorization, then exchanges code for tokens.
        Returns dict with access_token and refresh_token.
        """
        auth_code: str | None = None
        error: str | None = None

        class CallbackHandler(http.server.BaseHTTPRequestHandler):
            def do_GET(self):
                nonlocal auth_code, error
                parsed = urllib.parse.urlparse(self.path)
                params = urllib.parse.parse_qs(parsed.query)

                if "code" in params:
                    auth_code = params["code"][0]
                    self.send_response(200)
                    self.send_header("Content-type", "text/html")
                    self.end_headers()
                    self.wfile.write(b"<h1>Authorization successful!</h1>")
                    self.wfile.write(b"<p>You can close this window and return to the terminal.</p>")
                elif "error" in params:
                    error = params.get("error_description", params["error"])[0]
                    self.send_response(400)
                    self.send_header("Content-type", "text/html")
                    self.end_headers()
                    self.wfile.write(f"<h1>Error: {error}</h1>".encode())
                else:
                    self.send_response(400)
                    self.end_headers()

            def log_message(self, format, *args):
                pass  # Suppress logging

        # Build authorization URL
        auth_params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": f"http://localhost:{port}/callback",
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            "access_type": "offline",  # Request refresh token
            "prompt": "consent",  # Force consent screen to get refresh token
        }
        auth_url = f"{GOOGLE_AUTH_URL}?{urllib.parse.urlencode(auth_params)}"

        # Start local server
        server = http.server.HTTPServer(("localhost", port), CallbackHandler)
        server.timeout = 120  # 2 minute timeout

        # Open browser
        webbrowser.open(auth_url)

        # Wait for callback
        server.handle_request()
        server.server_close()

        if error:
            raise GoogleAuthError(f"Authorization failed: {error}")
        if not auth_code:
            raise GoogleAuthError("No authorization code received")

        # Exchange code for tokens
        with httpx.Client() as client:
            response = client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.settings.google_client_id,
                    "client_secret": self.settings.google_client_secret,
                    "code": auth_code,
                    "grant_type": "authorization_code",
                    "redirect_uri": f"http://localhost:{port}/callback",
                },
            )

            if response.status_code != 200:
                raise GoogleAuthError(f"Token exchange failed: {response.text}")

            return response.json()

    def get_spreadsheet(self, spreadsheet_id: str) -> dict:
        """Fetch worksheet properties (title, sheetId, index) of a spreadsheet."""
        return self._request(
            "GET",
            f"/{spreadsheet_id}",
            params={"fields": "sheets.properties"},
        )

    def get_values(self, spreadsheet_id: str, a1_range: str) -> list[list]:
        """
        Read cell values of a range.

        Numbers come back as numbers (UNFORMATTED_VALUE), so ids stay ints.
        Trailing empty rows and cells are omitted by the API.
        """
        data = self._request(
            "GET",
            f"/{spreadsheet_id}/values/{quote_range(a1_range)}",
            params={"valueRenderOption": "UNFORMATTED_VALUE"},
        )
        return data.get("values", [])

    def append_values(self, spreadsheet_id: str, a1_range: str, rows: list[list]) -> dict:
        """Append rows after the last row of the table found in `a1_range`."""
        return self._request(
            "POST",
            f"/{spreadsheet_id}/values/{quote_range(a1_range)}:append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": rows},
        )

    def update_values(self, spreadsheet_id: str, a1_range: str, rows: list[list]) -> dict:
        """Overwrite the cells of `a1_range`."""
        return self._request(
            "PUT",
            f"/{spreadsheet_id}/values/{quote_range(a1_range)}",
            params={"valueInputOption": "RAW"},
            json={"values": rows},
        )

    def batch_update(self, spreadsheet_id: str, requests: list[dict]) -> dict:
        """Run structural requests (addSheet, deleteDimension, repeatCell, ...)."""
        return self._request(
            "POST",
            f"/{spreadsheet_id}:batchUpdate",
            json={"requests": requests},
        )
