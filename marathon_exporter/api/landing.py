"""Landing page linking to the telemetry path."""

from html import escape

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response

from marathon_exporter.config import Settings

landing_bp = Blueprint("landing", __name__)

_LANDING_PAGE = """<html>
<head><title>Marathon Exporter</title></head>
<body>
<h1>Marathon Exporter</h1>
<p><a href='{path}'>Metrics</a></p>
</body>
</html>
"""


@landing_bp.route("/", methods=["GET"])
@inject
def index(settings: Settings = Provide["config"]) -> Response:
    return Response(
        _LANDING_PAGE.format(path=escape(settings.telemetry_path)),
        content_type="text/html; charset=utf-8",
    )
