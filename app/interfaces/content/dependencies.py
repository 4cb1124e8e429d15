"""
Dependency injection for the content bounded context.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.content.reports import (
    CreateReportUseCase,
    GetReportUseCase,
    ListReportsUseCase,
)
from app.application.content.trainings import (
    CreateTrainingUseCase,
    DeleteTrainingUseCase,
    EnrollInTrainingUseCase,
    ListOpenTrainingsUseCase,
    ListTrainingsUseCase,
    UpdateTrainingUseCase,
)
from app.application.notifications.queue import NotificationJobQueue
from app.infrastructure.content.report_repository import ReportRepositoryAdapter
from app.infrastructure.content.training_repository import TrainingRepositoryAdapter
from app.interfaces.dependencies import get_db_engine, get_notification_queue


def get_create_report_use_case(
    engine: Engine = Depends(get_db_engine),
    queue: NotificationJobQueue = Depends(get_notification_queue),
) -> CreateReportUseCase:
    return CreateReportUseCase(report_repo=ReportRepositoryAdapter(engine), notifier=queue)


def get_list_reports_use_case(engine: Engine = Depends(get_db_engine)) -> ListReportsUseCase:
    return ListReportsUseCase(report_repo=ReportRepositoryAdapter(engine))


def get_report_use_case(engine: Engine = Depends(get_db_engine)) -> GetReportUseCase:
    return GetReportUseCase(report_repo=ReportRepositoryAdapter(engine))


def get_list_trainings_use_case(
    engine: Engine = Depends(get_db_engine),
) -> ListTrainingsUseCase:
    return ListTrainingsUseCase(training_repo=TrainingRepositoryAdapter(engine))


def get_create_training_use_case(
    engine: Engine = Depends(get_db_engine),
) -> CreateTrainingUseCase:
    return CreateTrainingUseCase(training_repo=TrainingRepositoryAdapter(engine))


def get_update_training_use_case(
    engine: Engine = Depends(get_db_engine),
) -> UpdateTrainingUseCase:
    return UpdateTrainingUseCase(training_repo=TrainingRepositoryAdapter(engine))


def get_delete_training_use_case(
    engine: Engine = Depends(get_db_engine),
) -> DeleteTrainingUseCase:
    return DeleteTrainingUseCase(training_repo=TrainingRepositoryAdapter(engine))


def get_open_trainings_use_case(
    engine: Engine = Depends(get_db_engine),
) -> ListOpenTrainingsUseCase:
    return ListOpenTrainingsUseCase(training_repo=TrainingRepositoryAdapter(engine))


def get_enroll_use_case(engine: Engine = Depends(get_db_engine)) -> EnrollInTrainingUseCase:
    return EnrollInTrainingUseCase(training_repo=TrainingRepositoryAdapter(engine))
