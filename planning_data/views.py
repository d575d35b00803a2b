import json
import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .cache import SearchResultStore
from .exceptions import InvalidFilter, RegistryUnavailable
from .forms import PlanningSearchForm, PlanningWatchForm
from .models import PlanningWatch
from .services import get_search_service

logger = logging.getLogger(__name__)

RECENT_SEARCHES = 5


def planning_search(request):
    """
    Single page:
    - GET -> empty form plus the most recent searches
    - POST -> run the search and show results, new applications flagged
    """
    result = None
    error = None

    if request.method == "POST":
        form = PlanningSearchForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            try:
                result = get_search_service().search(
                    data["filter_type"],
                    data["filter_value"],
                    data["limit"],
                    webhook_url=data.get("webhook_url") or None,
                )
            except InvalidFilter as exc:
                error = str(exc)
            except RegistryUnavailable as exc:
                logger.exception("REGISTRY ERROR: %r", exc)
                error = "There was an error contacting the planning registry. Please try again later."
    else:
        form = PlanningSearchForm(
            initial={"limit": settings.PLANNING_DATA.get("DEFAULT_LIMIT", 10)}
        )

    try:
        recent = list(SearchResultStore().latest_per_key()[:RECENT_SEARCHES])
    except DatabaseError as exc:
        logger.exception("Error loading recent searches: %r", exc)
        recent = []

    return render(
        request,
        "planning_data/search.html",
        {
            "form": form,
            "result": result,
            "new_ids": result.new_ids if result else set(),
            "error": error,
            "recent_searches": recent,
        },
    )


@csrf_exempt
@require_http_methods(["POST"])
def planning_search_api(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        return JsonResponse({"success": False, "error": "Request body must be JSON"}, status=400)

    if not isinstance(body, dict):
        return JsonResponse({"success": False, "error": "Request body must be a JSON object"}, status=400)

    filter_type = body.get("filterType")
    filter_value = body.get("filterValue")
    limit = body.get("limit", settings.PLANNING_DATA.get("DEFAULT_LIMIT", 10))
    webhook_url = body.get("webhookUrl") or None

    if not filter_type or not filter_value:
        return JsonResponse(
            {"success": False, "error": "Missing required parameters: filterType and filterValue"},
            status=400,
        )

    try:
        result = get_search_service().search(filter_type, filter_value, limit, webhook_url=webhook_url)
    except InvalidFilter as exc:
        return JsonResponse({"success": False, "error": str(exc)}, status=400)
    except RegistryUnavailable as exc:
        logger.exception("REGISTRY ERROR: %r", exc)
        return JsonResponse({"success": False, "error": str(exc)}, status=502)

    return JsonResponse({"success": True, **result.to_dict()})


@login_required
def create_watch(request):
    if request.method == "POST":
        form = PlanningWatchForm(request.POST)
        if form.is_valid():
            form.save()
            return redirect("watch_thanks")
    else:
        form = PlanningWatchForm()
    return render(request, "planning_data/watch_form.html", {"form": form})


@login_required
def watch_list(request):
    watches = PlanningWatch.objects.order_by("-created_at")
    return render(request, "planning_data/watch_list.html", {"watches": watches})


def watch_thanks(request):
    return render(request, "planning_data/watch_thanks.html")
