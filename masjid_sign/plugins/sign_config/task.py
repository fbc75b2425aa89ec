"""
Background task: reload sign settings and downtime rules.
"""
from typing import Any, Dict, Optional

from masjid_sign.core.task import BaseTask
from masjid_sign.plugins.sign_config.service import get_engine_rules, get_settings

TASK_NAME = "sign_config"


class SignConfigTask(BaseTask):
    def __init__(self, interval_seconds: Any = 300):
        schedule_type, schedule_config = self.every(interval_seconds, 300)
        super().__init__(TASK_NAME, schedule_type, schedule_config)

    def fetch(self, config: Dict[str, Any], config_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {"settings": get_settings(), "rules": get_engine_rules()}

    def to_snapshots(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"settings": payload["settings"], "rules": payload["rules"]}
