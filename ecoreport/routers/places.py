from fastapi import APIRouter, Query

from ecoreport.integrations.places import autocomplete

router = APIRouter(prefix="/api/v1/places", tags=["places"])


@router.get("/autocomplete")
async def suggest(q: str = Query(default="", max_length=200)):
    return {"suggestions": await autocomplete(q)}
