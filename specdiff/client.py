"""REST client for the specs backend.

The backend stores spec versions and hands the engine either two full
documents for a version pair or a pre-classified change list for a single
version. Only those read endpoints are wrapped here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import ClientConfig, ComparisonPayload, SpecVersion, VersionDiff
from .exceptions import BackendError, MissingArtifactError

logger = logging.getLogger(__name__)


class SpecsApiClient:
    """Read-only client for spec versions, per-version diffs and comparisons."""

    def __init__(self, config: Optional[ClientConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Connection settings (defaults to ClientConfig.from_env())
            session: Pre-built session, mainly for tests
        """
        self.config = config or ClientConfig.from_env()
        self.base_url = self.config.base_url.rstrip('/')
        self.timeout_s = self.config.timeout_s

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=self.config.max_retries,
                status_forcelist=[429, 500, 502, 503, 504],
                backoff_factor=1,
                allowed_methods=["HEAD", "GET", "OPTIONS"]
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session
        self.session.headers.update({
            'X-Tenant-ID': self.config.tenant_id,
            'Accept': 'application/json',
        })

    def get_spec_versions(self, spec_id: str) -> list[SpecVersion]:
        """List stored versions of a spec, oldest first."""
        data = self._get(f"/api-specs/{spec_id}/versions")
        if not isinstance(data, list):
            raise BackendError(f"Unexpected versions payload for spec {spec_id}")
        versions = [_parse(SpecVersion, item, "versions") for item in data]
        return sorted(versions, key=lambda v: v.version)

    def get_version_diff(self, spec_id: str, version: int) -> VersionDiff:
        """Fetch the pre-classified change list stored for one version."""
        data = self._get(f"/api-specs/{spec_id}/versions/{version}/diff")
        return _parse(VersionDiff, data, "version diff")

    def compare_versions(self, spec_id: str, current: int, compare_with: int) -> ComparisonPayload:
        """
        Fetch the two full documents for a version pair.

        Raises:
            MissingArtifactError: If either full document is not stored
            BackendError: On any other failure
        """
        path = f"/api-specs/{spec_id}/versions/{current}/compare"
        try:
            data = self._get(path, params={"compare_with": compare_with})
        except BackendError as e:
            if e.status_code == 404:
                raise MissingArtifactError(
                    f"Full documents not stored for v{compare_with} -> v{current}",
                    [compare_with, current]
                )
            raise

        payload = _parse(ComparisonPayload, data, "comparison")
        if not payload.current_version:
            payload.current_version = current
        if not payload.previous_version:
            payload.previous_version = compare_with

        missing = payload.missing_versions
        if missing:
            raise MissingArtifactError(
                f"Full document missing for version(s) {missing}",
                missing
            )
        return payload

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            logger.info("GET %s", path)
            response = self.session.get(url, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise BackendError(f"Failed to reach backend for {path}: {e}")

        if response.status_code != 200:
            logger.error("GET %s failed: HTTP %s", path, response.status_code)
            raise BackendError(
                f"API GET {path} failed: {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {path}: {e}", status_code=response.status_code)


def _parse(model, data: Any, label: str):
    """Build a model from a backend object, mapping bad shapes to BackendError."""
    if not isinstance(data, dict):
        raise BackendError(f"Unexpected {label} payload: expected an object, got {type(data).__name__}")
    try:
        return model.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise BackendError(f"Malformed {label} payload: {e!r}")
