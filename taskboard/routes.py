"""
HTTP routes for the task board API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException

from taskboard.auth import AuthService, TokenIdentity
from taskboard.carousel import CarouselCatalog
from taskboard.dependencies import (
    get_auth_service,
    get_carousel_catalog,
    get_current_identity,
    get_task_service,
)
from taskboard.errors import TaskboardError
from taskboard.schemas import (
    CarouselImagePayload,
    CarouselImageResponse,
    LoginPayload,
    LoginResponse,
    ProfileResponse,
    RegisterPayload,
    RegisterResponse,
    TaskCreatePayload,
    TaskEditPayload,
    TaskResponse,
    TaskStatusPayload,
    UserResponse,
)
from taskboard.tasks import TaskService

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def _internal_errors(message: str) -> Iterator[None]:
    """
    Let deliberate client errors through; log anything else and answer with a
    generic 500 carrying only ``message``.
    """
    try:
        yield
    except TaskboardError as exc:
        if exc.status_code < 500:
            raise
        logger.exception("%s: %s", message, exc.message)
        raise HTTPException(status_code=500, detail=message) from exc
    except Exception as exc:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message) from exc


@router.post("/carouselimages", response_model=CarouselImageResponse, status_code=201)
def add_carousel_image(
    payload: CarouselImagePayload,
    catalog: CarouselCatalog = Depends(get_carousel_catalog),
):
    with _internal_errors("Failed to add carousel image"):
        image = catalog.add_image(payload.imgurl, payload.maker)
    return CarouselImageResponse(**image.as_dict())


@router.get("/carouselimages", response_model=list[CarouselImageResponse])
def list_carousel_images(catalog: CarouselCatalog = Depends(get_carousel_catalog)):
    with _internal_errors("Failed to fetch carousel images"):
        images = catalog.list_images()
    return [CarouselImageResponse(**image.as_dict()) for image in images]


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: RegisterPayload, auth: AuthService = Depends(get_auth_service)
):
    with _internal_errors("Failed to register user"):
        user = auth.register(
            payload.email, payload.password, payload.firstname, payload.lastname
        )
    return RegisterResponse(
        message="User registered successfully",
        user=UserResponse(**user.as_dict()),
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginPayload, auth: AuthService = Depends(get_auth_service)):
    with _internal_errors("Failed to log in"):
        result = auth.login(payload.email, payload.password)
    return LoginResponse(
        message="Logged in successfully",
        token=result.token,
        firstname=result.user.firstname,
    )


@router.get("/user", response_model=ProfileResponse)
def get_user(
    identity: TokenIdentity = Depends(get_current_identity),
    auth: AuthService = Depends(get_auth_service),
):
    with _internal_errors("Failed to fetch user information"):
        profile = auth.get_profile(identity.user_id)
    return ProfileResponse(**profile)


@router.get("/tasks", response_model=list[TaskResponse])
def list_pending_tasks(
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    with _internal_errors("Failed to fetch pending tasks"):
        rows = tasks.list_pending(identity.user_id)
    return [TaskResponse(**row.as_dict()) for row in rows]


@router.get("/taskschange", response_model=list[TaskResponse])
def list_completed_tasks(
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    with _internal_errors("Failed to fetch completed tasks"):
        rows = tasks.list_completed(identity.user_id)
    return [TaskResponse(**row.as_dict()) for row in rows]


@router.get("/remindertasks", response_model=list[TaskResponse])
def list_reminder_tasks(
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    with _internal_errors("Failed to fetch reminder tasks"):
        rows = tasks.list_upcoming_reminders(identity.user_id)
    return [TaskResponse(**row.as_dict()) for row in rows]


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    payload: TaskCreatePayload,
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    with _internal_errors("Failed to add task"):
        row = tasks.create_task(
            identity.user_id,
            task=payload.task,
            type=payload.type,
            timeofentry=payload.timeofentry,
            completestatus=payload.completestatus,
            remindertime=payload.remindertime,
            currentstatus=payload.currentstatus,
        )
    return TaskResponse(**row.as_dict())


def _set_status(
    tasks: TaskService,
    identity: TokenIdentity,
    task_id: int,
    payload: TaskStatusPayload,
    message: str,
) -> TaskResponse:
    with _internal_errors(message):
        row = tasks.set_status(
            identity.user_id,
            task_id,
            completestatus=payload.completestatus,
            currentstatus=payload.currentstatus,
        )
    return TaskResponse(**row.as_dict())


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def mark_task_done(
    task_id: int,
    payload: TaskStatusPayload,
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    return _set_status(tasks, identity, task_id, payload, "Failed to update task status")


@router.patch("/dtasks/{task_id}", response_model=TaskResponse)
def hide_task(
    task_id: int,
    payload: TaskStatusPayload,
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    return _set_status(tasks, identity, task_id, payload, "Failed to update task status")


@router.patch("/taskschange/{task_id}", response_model=TaskResponse)
def undo_task(
    task_id: int,
    payload: TaskStatusPayload,
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    return _set_status(tasks, identity, task_id, payload, "Failed to undo task")


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def edit_task(
    task_id: int,
    payload: TaskEditPayload,
    identity: TokenIdentity = Depends(get_current_identity),
    tasks: TaskService = Depends(get_task_service),
):
    with _internal_errors("Failed to update task"):
        row = tasks.edit_content(
            identity.user_id,
            task_id,
            editedtask=payload.editedtask,
            editedtype=payload.editedtype,
        )
    return TaskResponse(**row.as_dict())
