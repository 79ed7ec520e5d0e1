"""
Pattern Hub API client used by the MCP tools.
"""

from typing import Any, Dict, List, Optional

import httpx

from pattern_hub import __version__
from pattern_hub.config import get_api_url

USER_AGENT = f"PatternHub-MCP/{__version__}"


class PatternAPIError(Exception):
    """The API answered with a non-success status."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(f"{status_code} {reason}".strip())
        self.status_code = status_code
        self.reason = reason


class PatternNotFound(PatternAPIError):
    def __init__(self, pattern_id: Any):
        super().__init__(404, "Not Found")
        self.pattern_id = pattern_id


class PatternAPIClient:
    """Thin async wrapper over the public REST endpoints.

    Network failures surface as httpx.RequestError.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        self.base_url = (base_url or get_api_url()).rstrip("/")
        self.timeout = timeout
        self.headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            return await client.get(f"{self.base_url}{path}", params=params)

    async def search(self, query: str, content_type: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"q": query}
        if content_type:
            params["type"] = content_type

        response = await self._get("/api/search", params)
        if response.status_code != 200:
            raise PatternAPIError(response.status_code, response.reason_phrase)
        return list(response.json().get("results") or [])

    async def get_item(self, pattern_id: Any) -> Dict[str, Any]:
        response = await self._get(f"/api/items/{pattern_id}")
        if response.status_code == 404:
            raise PatternNotFound(pattern_id)
        if response.status_code != 200:
            raise PatternAPIError(response.status_code, response.reason_phrase)
        return response.json()
