"""Admin UI blueprint for the Promo Admin service.

This module mounts the administrator statistics page at `/ui`. All numbers
come raw from the statistics service; formatting happens in the template.
"""

from flask import Blueprint, current_app, render_template

from promo_admin.services import STATS_EXTENSION
from promo_admin.stats import CodeType, Region


# Serve templates from promo_admin/templates
ui_bp = Blueprint(
    "ui",
    __name__,
    template_folder="../templates",
)

REGION_LABELS = {
    Region.EMEA.value: "EMEA",
    Region.AMERICAS.value: "Americas",
    Region.ASIA_PACIFIC.value: "Asia-Pacific",
}
TYPE_LABELS = {
    CodeType.STARTER.value: "Starter",
    CodeType.STANDARD.value: "Standard",
}


@ui_bp.app_template_filter("percent")
def format_percent(value) -> str:
    """Formats a raw usage percentage to one decimal place."""
    return f"{value:.1f}%"


@ui_bp.route("/ui", methods=["GET"])
def index():
    """Admin UI entry point: promo code usage statistics."""
    report = current_app.extensions[STATS_EXTENSION].refresh()
    stats = report.serialize()
    return render_template(
        "index.html",
        title="Promo Code Statistics",
        overall=stats["overall"],
        by_region=stats["by_region"],
        by_type=stats["by_type"],
        region_labels=REGION_LABELS,
        type_labels=TYPE_LABELS,
    )
