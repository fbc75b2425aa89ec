"""
Outbound SMS through the Sinch REST batches endpoint.
"""
import logging
from typing import Any, Dict

import requests

SINCH_URL = "https://sms.api.sinch.com/xms/v1/{plan}/batches"


class SinchSms:
    def __init__(self, config: Dict[str, Any]):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.enabled = bool(config.get("enabled", False))
        self.service_plan_id = config.get("service_plan_id") or ""
        self.api_key = config.get("api_key") or ""
        self.api_secret = config.get("api_secret") or ""
        self.from_number = config.get("from_number") or ""
        self.to_number = config.get("to_number") or ""

    @property
    def configured(self) -> bool:
        return bool(self.enabled and self.service_plan_id and self.api_key and self.api_secret and self.from_number)

    def send(self, to: str, body: str) -> Dict[str, Any]:
        """Send one text. Raises on missing credentials or a non-2xx reply."""
        if not self.configured:
            raise RuntimeError("Sinch credentials not configured")
        if not to or not body:
            raise ValueError("SMS needs a recipient and a body")
        response = requests.post(
            SINCH_URL.format(plan=self.service_plan_id),
            auth=(self.api_key, self.api_secret),
            json={"from": self.from_number, "to": [to], "body": body},
            timeout=15,
        )
        response.raise_for_status()
        self.logger.info(f"SMS sent to {to}")
        return response.json()
