from fastapi import APIRouter, Depends
from typing import List, Dict, Any

from moodbuddy.web.dependencies import ServiceContainer, get_container, get_user_id

router = APIRouter(prefix="/api", tags=["gamification"])

@router.get("/streaks", response_model=Dict[str, Any])
def get_streaks(
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    """
    Стрики пользователя по всем категориям и сводка
    """
    streaks = container.repos.streaks.list_for_user(user_id)
    summary = container.gamification.get_streak_summary(user_id)
    return {
        "streaks": [streak.to_dict() for streak in streaks],
        "summary": summary.to_dict()
    }

@router.get("/achievements", response_model=List[Dict[str, Any]])
def get_achievements(
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    """
    Достижения пользователя, новые первыми
    """
    achievements = container.evaluator.get_user_achievements(user_id)
    return [achievement.to_dict() for achievement in achievements]
