"""Translation of the Marathon applications document into per-app gauges."""

import logging
from typing import Any

from marathon_exporter.exceptions import SourceReportedError
from marathon_exporter.metrics.registry import GaugeRegistry
from marathon_exporter.metrics.translation import is_number

logger = logging.getLogger(__name__)

APPS_PATH = "/v2/apps"

# Source field -> (gauge name, help)
APP_GAUGES = {
    "instances": ("app_instances", "Number of instances requested for the Marathon app"),
    "tasksRunning": ("app_tasks_running", "Number of running tasks of the Marathon app"),
    "tasksStaged": ("app_tasks_staged", "Number of staged tasks of the Marathon app"),
    "tasksHealthy": ("app_tasks_healthy", "Number of healthy tasks of the Marathon app"),
    "tasksUnhealthy": ("app_tasks_unhealthy", "Number of unhealthy tasks of the Marathon app"),
}


class AppsTranslator:
    """Sets one gauge per app field, labelled by app id and app version."""

    def __init__(self, gauges: GaugeRegistry) -> None:
        self.gauges = gauges

    def translate(self, document: dict[str, Any]) -> int:
        """Populate app gauges and return the number of apps translated.

        Raises:
            SourceReportedError: If the document carries a ``message`` field.
            ValueError: If the document has no ``apps`` list.
        """
        if document.get("message") is not None:
            raise SourceReportedError(str(document["message"]))

        apps = document.get("apps")
        if not isinstance(apps, list):
            raise ValueError(f"expected an apps list, got {apps!r}")

        translated = 0
        for app in apps:
            if not isinstance(app, dict) or not isinstance(app.get("id"), str):
                logger.debug(f"Skipping malformed app entry {app!r}")
                continue

            version = app.get("version")
            labels = {"app": app["id"], "version": version if isinstance(version, str) else ""}

            for field_name, (name, help_text) in APP_GAUGES.items():
                value = app.get(field_name)
                if is_number(value):
                    gauge, _ = self.gauges.fetch(name, help_text, "app", "version")
                    gauge.labels(**labels).set(value)

            translated += 1

        return translated
