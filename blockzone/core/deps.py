from fastapi import Request

from ..database import DatabaseManager
from ..scoring.prizes import PrizeCalculator


def get_db(request: Request) -> DatabaseManager:
    return request.app.state.db


def get_prize_calculator(request: Request) -> PrizeCalculator:
    return request.app.state.prize_calculator
