"""
Base API client for Seasonarr's GraphQL integrations.
Provides common functionality for rate limiting, request handling, and error parsing.
"""

import logging
import time
import requests
from typing import Any, Dict, Optional

logger = logging.getLogger('seasonarr')


class AniListError(Exception):
    """Base class for AniList failures."""
    pass


class AniListAPIError(AniListError):
    """AniList could not be reached or answered with an error."""
    pass


class AniListValidationError(AniListError):
    """AniList answered, but the payload is missing fields the query guarantees."""
    pass


class BaseAPIClient:
    """
    Base class for GraphQL API clients with rate limiting and error handling.

    Subclasses should:
    - Set `api_name` class attribute for error messages
    - Set `exception_class` class attribute for raising appropriate exceptions
    - Set `api_url` (class or instance attribute) to the GraphQL endpoint
    """

    api_name: str = "API"
    api_url: str = ""
    exception_class: type = Exception
    rate_limit_delay: float = 0.1
    request_timeout: int = 30

    def __init__(self):
        """Initialize base client state."""
        self._last_request_time = 0

    def _rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self._last_request_time = time.time()

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests. Override in subclass."""
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def _parse_error_response(self, response: requests.Response) -> str:
        """
        Parse error message from a GraphQL response body.

        Handles the {"errors": [{"message": ...}]} shape and falls back to
        a top-level 'message' or the raw text.

        Args:
            response: Failed HTTP response

        Returns:
            Extracted error message or raw response text
        """
        error_msg = response.text
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                errors = error_data.get('errors')
                if isinstance(errors, list) and errors:
                    error_msg = '; '.join(str(e.get('message', e)) for e in errors if isinstance(e, dict)) or error_msg
                else:
                    error_msg = error_data.get('message', error_msg)
        except Exception as e:
            logger.debug(f"Failed to parse error response JSON: {e}")
        return error_msg

    def _handle_response(self, response: requests.Response) -> Any:
        """
        Handle a GraphQL HTTP response, raising exceptions for errors.

        Args:
            response: HTTP response object

        Returns:
            The 'data' member of the response, or None for 404

        Raises:
            exception_class: For HTTP errors and GraphQL errors
        """
        if response.status_code == 404:
            return None
        elif response.status_code == 429:
            retry_after = response.headers.get('Retry-After', '?')
            raise self.exception_class(f"Rate limited by {self.api_name} (retry after {retry_after}s)")
        elif response.status_code >= 400:
            error_msg = self._parse_error_response(response)
            raise self.exception_class(f"API error {response.status_code}: {error_msg}")

        try:
            body = response.json()
        except ValueError as e:
            raise self.exception_class(f"Invalid JSON from {self.api_name}: {e}")

        if not isinstance(body, dict):
            raise AniListValidationError(
                f"Malformed response from {self.api_name}: expected an object, got {type(body).__name__}")

        if body.get('errors'):
            messages = '; '.join(str(e.get('message', e)) for e in body['errors'] if isinstance(e, dict))
            raise self.exception_class(f"GraphQL error: {messages}")

        return body.get('data')

    def _post_graphql(self, query: str, variables: Optional[Dict] = None) -> Any:
        """
        POST a GraphQL query with rate limiting and error handling.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            Response 'data' or None

        Raises:
            exception_class: If the request fails
        """
        self._rate_limit()

        try:
            response = requests.post(
                self.api_url,
                headers=self._get_headers(),
                json={'query': query, 'variables': variables or {}},
                timeout=self.request_timeout
            )
            return self._handle_response(response)

        except requests.exceptions.Timeout:
            raise self.exception_class(f"Request timeout after {self.request_timeout}s")
        except requests.exceptions.ConnectionError:
            raise self.exception_class(f"Could not connect to {self.api_name}")
        except requests.exceptions.RequestException as e:
            raise self.exception_class(f"Request failed: {e}")
