"""
FastAPI router for the content bounded context.

Reports and monthly trainings. Admin routes live under `/admin`.
All routes delegate to use cases. No business logic here.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.application.content.dtos import (
    ClassInput,
    CreateReportCommand,
    CreateTrainingCommand,
    EnrollCommand,
    TrainingFilter,
    UpdateTrainingCommand,
)
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
from app.domain.accounts.entities import User
from app.domain.content.entities import MonthlyTraining, Report, Student
from app.interfaces.content.dependencies import (
    get_create_report_use_case,
    get_create_training_use_case,
    get_delete_training_use_case,
    get_enroll_use_case,
    get_list_reports_use_case,
    get_list_trainings_use_case,
    get_open_trainings_use_case,
    get_report_use_case,
    get_update_training_use_case,
)
from app.interfaces.content.schemas import (
    AdminTrainingItem,
    AdminTrainingListResponse,
    ClassItem,
    ClassRequest,
    CreateReportRequest,
    CreateTrainingRequest,
    EnrollRequest,
    ReportListResponse,
    ReportResponse,
    ReportSummaryItem,
    StudentItem,
    TrainingItem,
    TrainingListResponse,
    UpdateTrainingRequest,
)
from app.interfaces.dependencies import get_current_user, require_admin
from app.interfaces.schemas import ErrorResponse

router = APIRouter(tags=["content"])

ADMIN_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


def _summary_fields(report: Report) -> dict:
    return {
        "id": report.id,
        "title": report.title,
        "type": report.type.value,
        "category": report.category.value,
        "summary": report.summary,
        "is_feature": report.is_feature,
        "author": report.author,
        "cover_image": report.cover_image,
        "views": report.views,
        "published_at": report.published_at,
    }


def to_report_response(report: Report) -> ReportResponse:
    return ReportResponse(
        **_summary_fields(report),
        content=report.content,
        articles=report.articles,
        images=report.images,
        status=report.status.value,
        created_at=report.created_at,
    )


def _training_fields(training: MonthlyTraining) -> dict:
    return {
        "id": training.id,
        "title": training.title,
        "description": training.description,
        "type": training.type,
        "month": training.month,
        "month_name": training.month_name,
        "year": training.year,
        "price": training.price,
        "max_students": training.max_students,
        "available_spots": training.available_spots,
        "status": training.status.value,
        "classes": [
            ClassItem(
                id=c.id,
                date=c.date,
                start_time=c.start_time,
                end_time=c.end_time,
                title=c.title,
                meeting_link=c.meeting_link,
                status=c.status.value,
            )
            for c in training.classes
        ],
        "registration_open_date": training.registration_open_date,
        "registration_close_date": training.registration_close_date,
    }


def to_student_item(student: Student) -> StudentItem:
    return StudentItem(
        user_id=student.user_id,
        name=student.name,
        email=student.email,
        phone=student.phone,
        enrolled_at=student.enrolled_at,
        payment_status=student.payment_status.value,
        payment_id=student.payment_id,
        experience_level=student.experience_level,
    )


def to_admin_training_item(training: MonthlyTraining) -> AdminTrainingItem:
    return AdminTrainingItem(
        **_training_fields(training),
        students=[to_student_item(s) for s in training.students],
        created_by=training.created_by,
        created_at=training.created_at,
    )


def _class_inputs(classes: list[ClassRequest] | None) -> list[ClassInput] | None:
    if classes is None:
        return None
    return [ClassInput(**c.model_dump()) for c in classes]


# ══════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════


@router.post(
    "/admin/reports",
    response_model=ReportResponse,
    status_code=201,
    responses=ADMIN_ERRORS,
    summary="Publish a report",
    description="Publish a report and queue its announcement to subscribers.",
)
def create_report(
    body: CreateReportRequest,
    admin: User = Depends(require_admin),
    use_case: CreateReportUseCase = Depends(get_create_report_use_case),
) -> ReportResponse:
    """Publish a report and queue its announcement."""
    report = use_case.execute(
        CreateReportCommand(
            author=admin.name or admin.email,
            author_id=str(admin.id),
            **body.model_dump(),
        )
    )
    return to_report_response(report)


@router.get(
    "/reports",
    response_model=ReportListResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="List reports",
)
def list_reports(
    category: str | None = Query(default=None, description="Report category"),
    limit: int = Query(default=20, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    use_case: ListReportsUseCase = Depends(get_list_reports_use_case),
) -> ReportListResponse:
    reports = use_case.execute(category=category, limit=limit, page=page)
    return ReportListResponse(
        reports=[ReportSummaryItem(**_summary_fields(r)) for r in reports],
        page=page,
        limit=limit,
    )


@router.get(
    "/reports/{report_id}",
    response_model=ReportResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Read a report",
    description="Return a published report and count the view.",
)
def get_report(
    report_id: UUID,
    user: User = Depends(get_current_user),
    use_case: GetReportUseCase = Depends(get_report_use_case),
) -> ReportResponse:
    """Return a published report, counting the view."""
    return to_report_response(use_case.execute(report_id))


# ══════════════════════════════════════════════════════════════════════
# Monthly trainings
# ══════════════════════════════════════════════════════════════════════


@router.get(
    "/admin/monthly-trainings",
    response_model=AdminTrainingListResponse,
    responses={**ADMIN_ERRORS, 404: {"model": ErrorResponse}},
    summary="List trainings",
)
def list_trainings(
    id: UUID | None = Query(default=None, description="Single training id"),
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None),
    status: str | None = Query(default=None),
    admin: User = Depends(require_admin),
    use_case: ListTrainingsUseCase = Depends(get_list_trainings_use_case),
) -> AdminTrainingListResponse:
    trainings = use_case.execute(
        TrainingFilter(training_id=id, month=month, year=year, status=status)
    )
    return AdminTrainingListResponse(
        trainings=[to_admin_training_item(t) for t in trainings]
    )


@router.post(
    "/admin/monthly-trainings",
    response_model=AdminTrainingItem,
    status_code=201,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
    summary="Create a training",
)
def create_training(
    body: CreateTrainingRequest,
    admin: User = Depends(require_admin),
    use_case: CreateTrainingUseCase = Depends(get_create_training_use_case),
) -> AdminTrainingItem:
    fields = body.model_dump(exclude={"classes"})
    training = use_case.execute(
        CreateTrainingCommand(
            created_by=admin.email, classes=_class_inputs(body.classes), **fields
        )
    )
    return to_admin_training_item(training)


@router.put(
    "/admin/monthly-trainings/{training_id}",
    response_model=AdminTrainingItem,
    responses={**ADMIN_ERRORS, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Update a training",
)
def update_training(
    training_id: UUID,
    body: UpdateTrainingRequest,
    admin: User = Depends(require_admin),
    use_case: UpdateTrainingUseCase = Depends(get_update_training_use_case),
) -> AdminTrainingItem:
    """Update a training; fields are restricted once students enroll."""
    fields = body.model_dump(exclude={"classes"})
    training = use_case.execute(
        UpdateTrainingCommand(
            training_id=training_id, classes=_class_inputs(body.classes), **fields
        )
    )
    return to_admin_training_item(training)


@router.delete(
    "/admin/monthly-trainings/{training_id}",
    status_code=204,
    responses={**ADMIN_ERRORS, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Delete a training",
    description="Only trainings without enrolled students can be deleted.",
)
def delete_training(
    training_id: UUID,
    admin: User = Depends(require_admin),
    use_case: DeleteTrainingUseCase = Depends(get_delete_training_use_case),
) -> Response:
    use_case.execute(training_id)
    return Response(status_code=204)


@router.get(
    "/monthly-trainings",
    response_model=TrainingListResponse,
    summary="Open trainings",
    description="Trainings currently accepting registrations.",
)
def list_open_trainings(
    use_case: ListOpenTrainingsUseCase = Depends(get_open_trainings_use_case),
) -> TrainingListResponse:
    """Public list of trainings open for registration."""
    return TrainingListResponse(
        trainings=[TrainingItem(**_training_fields(t)) for t in use_case.execute()]
    )


@router.post(
    "/monthly-trainings/{training_id}/enroll",
    response_model=StudentItem,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Enroll in a training",
    description="Reserve a seat. The seat is confirmed when the payment is approved.",
)
def enroll(
    training_id: UUID,
    body: EnrollRequest,
    user: User = Depends(get_current_user),
    use_case: EnrollInTrainingUseCase = Depends(get_enroll_use_case),
) -> StudentItem:
    """Enroll the caller in a training as a pending student."""
    student = use_case.execute(
        EnrollCommand(
            training_id=training_id,
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            phone=body.phone,
            experience_level=body.experience_level,
        )
    )
    return to_student_item(student)
