# =======================================================================================
# gatepass/services/pass_decoder.py - Pass Payload Decoding
# =======================================================================================
import json
import logging
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlsplit
from pydantic import ValidationError
from ..config import config
from ..models.schemas import AccessClaim
from ..utils.exceptions import InvalidPayloadError

logger = logging.getLogger(__name__)


class PassDecoder:
    """Turns raw scanned text into an AccessClaim. Pure parsing, no I/O."""

    def __init__(self, query_param: Optional[str] = None):
        self.query_param = query_param or config.PASS_QUERY_PARAM

    def decode(self, raw: str) -> AccessClaim:
        """
        Decode a scanned pass.

        Tries the text as a JSON claim first, then as a URL carrying the
        claim JSON in its query string. Raises InvalidPayloadError when
        neither form yields a claim.
        """
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidPayloadError("Invalid QR payload.")

        text = raw.strip()
        claim = self._from_json(text)
        if claim is None:
            claim = self._from_url(text)
        if claim is None:
            logger.warning("Rejected pass payload (%d chars)", len(text))
            raise InvalidPayloadError("Invalid QR payload.")
        return claim

    def encode(self, claim: AccessClaim) -> str:
        """Canonical JSON form of a claim; decode(encode(c)) == c."""
        return json.dumps(claim.to_payload(), separators=(",", ":"))

    def encode_url(self, claim: AccessClaim, base_url: str) -> str:
        """URL form carrying the canonical JSON in the pass query parameter."""
        sep = "&" if urlsplit(base_url).query else "?"
        return f"{base_url}{sep}{urlencode({self.query_param: self.encode(claim)})}"

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------
    @staticmethod
    def _validate(data: Any) -> Optional[AccessClaim]:
        if not isinstance(data, dict):
            return None
        try:
            return AccessClaim.model_validate(data)
        except ValidationError as e:
            logger.debug("Pass payload failed shape check: %s", e)
            return None

    def _from_json(self, text: str) -> Optional[AccessClaim]:
        try:
            data = json.loads(text)
        except ValueError:
            return None
        return self._validate(data)

    def _from_url(self, text: str) -> Optional[AccessClaim]:
        try:
            parts = urlsplit(text)
        except ValueError:
            return None
        if not parts.scheme or not parts.netloc:
            return None

        values = parse_qs(parts.query).get(self.query_param)
        if not values:
            return None
        return self._from_json(values[0])
