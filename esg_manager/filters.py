from esg_manager.models import PILLAR_NAMES

STATUS_BADGES = {
    "PENDING": "secondary",
    "PROCESSING": "info",
    "COMPLETED": "primary",
    "PASSED": "success",
    "FAILED": "danger",
}


def format_revenue(amount):
    """Compact revenue label: 1.2B, 3.4M, 12K or 1,234. Missing or zero is 'Not specified'."""
    if not amount:
        return "Not specified"
    if amount >= 1_000_000_000:
        return f"{amount / 1_000_000_000:.1f}B"
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{amount / 1_000:.0f}K"
    return f"{amount:,.0f}" if float(amount).is_integer() else f"{amount:,.2f}"


def register_filters(app):
    app.add_template_filter(format_revenue, "revenue")
    app.add_template_filter(lambda p: PILLAR_NAMES.get(p, p), "pillar_name")
    app.add_template_filter(lambda s: STATUS_BADGES.get(s, "secondary"), "status_badge")
