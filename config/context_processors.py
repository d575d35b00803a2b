from django.conf import settings


def branding(request):
    """Brand strings and search limits shared by every template."""
    return {
        "BRAND_NAME": settings.BRAND_NAME,
        "BRAND_TAGLINE": settings.BRAND_TAGLINE,
        "PLANNING_MAX_LIMIT": settings.PLANNING_DATA.get("MAX_LIMIT", 1000),
    }
