import pytest
from fastapi.testclient import TestClient

from moodbuddy.core.achievements import AchievementEvaluator
from moodbuddy.core.streaks import StreakTracker
from moodbuddy.database import DatabaseManager, Repositories
from moodbuddy.services.ai_service import AIService
from moodbuddy.web.app import create_app
from moodbuddy.web.dependencies import ServiceContainer


@pytest.fixture
def db():
    manager = DatabaseManager("sqlite://")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def repos(db):
    return Repositories(db)


@pytest.fixture
def tracker(repos):
    return StreakTracker(repos.streaks, "UTC")


@pytest.fixture
def evaluator(repos):
    return AchievementEvaluator(repos.achievements, repos.streaks)


@pytest.fixture
def offline_ai():
    service = AIService()
    service.enabled = False
    service.openai_client = None
    return service


@pytest.fixture
def container(db, offline_ai):
    return ServiceContainer(db, ai_service=offline_ai)


@pytest.fixture
def client(container):
    app = create_app(container=container)
    with TestClient(app) as test_client:
        yield test_client
