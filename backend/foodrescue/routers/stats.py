# foodrescue/routers/stats.py
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..deps import get_repo, get_shelters
from ..schemas import StatsOverview
from ..services.charts import plot_leaderboard_png
from ..services.impact import compute_stats, display_carbon
from ..services.shelters import ShelterRegistry

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=StatsOverview)
async def overview(repo=Depends(get_repo)):
    stats = await compute_stats(repo)
    stats["total_carbon_saved"] = display_carbon(stats["total_carbon_saved"])
    return stats


@router.get("/plots/leaderboard.png")
async def leaderboard_png(shelters: ShelterRegistry = Depends(get_shelters)):
    buf = plot_leaderboard_png(await shelters.leaderboard())
    return StreamingResponse(buf, media_type="image/png")
