"""Dashboard and global statistics pages."""
import logging

from fastapi import APIRouter, Depends, Request

from edht.services.api_client import TrackerAPIClient, fetch_optional, get_api_client
from edht.services.session import Session, require_session
from edht.templating import render

router = APIRouter(tags=["stats"])
logger = logging.getLogger(__name__)


@router.get("/dashboard", include_in_schema=False)
async def dashboard(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    global_stats = await fetch_optional(client.global_stats(), "global statistics")
    personal = await fetch_optional(client.dashboard_stats(), "dashboard statistics")
    return render(
        request,
        "stats/dashboard.html",
        {"global_stats": global_stats, "dashboard": personal},
        session=session,
    )


@router.get("/stats", include_in_schema=False)
async def global_statistics(
    request: Request,
    session: Session = Depends(require_session),
    client: TrackerAPIClient = Depends(get_api_client),
):
    global_stats = await fetch_optional(client.global_stats(), "global statistics")
    return render(request, "stats/global.html", {"global_stats": global_stats}, session=session)
