"""
Repository Factory
Centralizes the wiring of storage adapters and session controllers from config.
"""

from cardwise.application.config import AppConfig, make_rng
from cardwise.application.session import StudySessionController
from cardwise.domain.ports import CardRepository, SessionLogRepository
from cardwise.infrastructure.storage import JsonCardRepository, JsonSessionLogRepository


def get_card_repository(config: AppConfig) -> CardRepository:
    return JsonCardRepository(data_dir=config.data_dir)


def get_session_log(config: AppConfig) -> SessionLogRepository:
    return JsonSessionLogRepository(data_dir=config.data_dir)


def get_session_controller(config: AppConfig) -> StudySessionController:
    """
    Returns a session controller bound to the configured user and storage.
    """
    return StudySessionController(
        cards_repo=get_card_repository(config),
        user_id=config.user_id,
        sessions_repo=get_session_log(config),
        rng=make_rng(config),
    )
