# hardware_report/publisher.py
"""
Posts a finished report to an inventory service.

The request body is {"labels": {...}, "result": <report>}. Labels tag the
submission (rack, cluster, owner) and never appear in the report itself.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import requests

TOKEN_ENV = 'HARDWARE_REPORT_TOKEN'


class ReportPublisher:
    """
    HTTP publisher for reports.

    Args:
        endpoint: URL the payload is POSTed to
        auth_token: Sent as 'Authorization: Bearer <token>' when set
        timeout: Request timeout in seconds
    """

    def __init__(self, endpoint: str, auth_token: Optional[str] = None, timeout: float = 30):
        if not endpoint or not endpoint.strip():
            raise ValueError("An endpoint URL is required to publish a report")
        self.endpoint = endpoint.strip()
        self.auth_token = auth_token
        self.timeout = timeout
        self.logger = logging.getLogger('publisher')

    @staticmethod
    def build_payload(report: Dict[str, Any], labels: Dict[str, str] = None) -> Dict[str, Any]:
        return {'labels': dict(labels or {}), 'result': report}

    def _get_headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.auth_token:
            headers['Authorization'] = f"Bearer {self.auth_token}"
        return headers

    def publish(self, report: Dict[str, Any], labels: Dict[str, str] = None,
                save_payload: Optional[str] = None) -> bool:
        """
        POST a report.

        Args:
            report: Rendered report dictionary
            labels: Submission labels
            save_payload: Also write the exact payload as JSON to this path

        Returns:
            bool: True if the service accepted the report
        """
        # JSON round-trip so tuples and enums serialize the same way as the file output
        payload = json.loads(json.dumps(self.build_payload(report, labels), default=str))

        if save_payload:
            path = Path(save_payload)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(json.dumps(payload, indent=2) + "\n")
                self.logger.info(f"Saved payload to {path}")
            except OSError as e:
                self.logger.error(f"Failed to write payload to {path}: {e}")

        try:
            response = requests.post(self.endpoint, json=payload, headers=self._get_headers(),
                                     timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(f"Publishing to {self.endpoint} failed: {e}")
            return False

        self.logger.info(f"Published report to {self.endpoint} ({response.status_code})")
        return True
