from fastapi import APIRouter

from ..config import POPULAR_CITIES, settings
from ..schemas import CitiesOut


router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("/popular", response_model=CitiesOut)
def popular_cities():
    return CitiesOut(default=settings.DEFAULT_CITY, cities=list(POPULAR_CITIES))
