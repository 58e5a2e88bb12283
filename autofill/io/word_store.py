"""Lightweight HTTP client for remote answer lists."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

from ..core.exceptions import LexiconLoadError
from ..data.lexicon import Lexicon, parse_word_lines
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


class HttpWordStore:
    """Fetch a word list from an HTTP endpoint.

    The endpoint may answer with a JSON list of strings, a JSON object holding
    such a list under ``"words"`` or ``"answers"``, or a plain-text body with
    one answer per line.
    """

    def __init__(
        self,
        url: str,
        token_env: str = "AUTOFILL_WORD_STORE_TOKEN",
        timeout_seconds: float = 30.0,
    ) -> None:
        self.url = url
        self.token_env = token_env
        self.timeout_seconds = timeout_seconds
        self._token = os.environ.get(token_env)

    def fetch(self) -> List[str]:
        """Download the raw answers from the store."""
        headers: Dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = requests.get(self.url, headers=headers, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise LexiconLoadError(f"Word store request failed: {exc}") from exc

        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type:
            payload = response.json()
            words = self._extract_words(payload)
            if words is None:
                LOGGER.warning("Word store payload has no word list: %s", type(payload).__name__)
                raise LexiconLoadError("Word store response missing a word list")
            return words
        return parse_word_lines(response.text.splitlines())

    def load(self, min_length: int = 2, max_length: int = 24) -> Lexicon:
        words = self.fetch()
        lexicon = Lexicon(words, min_length=min_length, max_length=max_length)
        LOGGER.info("Fetched %s unique answers from %s", len(lexicon), self.url)
        return lexicon

    @staticmethod
    def _extract_words(payload: Any) -> Optional[List[str]]:
        if isinstance(payload, dict):
            payload = payload.get("words") or payload.get("answers")
        if not isinstance(payload, list):
            return None
        return [item for item in payload if isinstance(item, str)]
