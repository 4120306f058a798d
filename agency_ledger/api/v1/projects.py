"""/v1/projects - project budgets and installment schedules"""

from typing import List

from fastapi import APIRouter, Depends, Response

from agency_ledger.api.dependencies import get_current_actor, get_project_service
from agency_ledger.api.v1.schemas import (
    InstallmentsEditRequest,
    MemberRequest,
    ProjectCreateRequest,
    ProjectResponse,
    ReplanRequest,
)
from agency_ledger.domain.models import Actor, Installment
from agency_ledger.services.projects import ProjectService

router = APIRouter()


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    request_body: ProjectCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    """Create a project; the installment plan is generated when budget and count are given"""
    project = service.create_project(
        actor,
        name=request_body.name,
        budget=request_body.budget,
        installment_count=request_body.installment_count,
        deadline=request_body.deadline,
        member_ids=request_body.member_ids,
    )
    return ProjectResponse.model_validate(project)


@router.get("/projects", response_model=List[ProjectResponse])
def list_projects(
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    """All projects for admins, own projects for everyone else"""
    return [ProjectResponse.model_validate(p) for p in service.list_projects(actor)]


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    return ProjectResponse.model_validate(service.get_project(actor, project_id))


@router.put("/projects/{project_id}/plan", response_model=ProjectResponse)
def replan(
    project_id: str,
    request_body: ReplanRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    """Regenerate the schedule after a budget, count or deadline change"""
    project = service.replan(
        actor,
        project_id,
        budget=request_body.budget,
        installment_count=request_body.installment_count,
        deadline=request_body.deadline,
    )
    return ProjectResponse.model_validate(project)


@router.put("/projects/{project_id}/installments", response_model=ProjectResponse)
def edit_installments(
    project_id: str,
    request_body: InstallmentsEditRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    installments = [
        Installment(number=inst.number, amount=inst.amount, date=inst.date) for inst in request_body.installments
    ]
    return ProjectResponse.model_validate(service.edit_installments(actor, project_id, installments))


@router.post("/projects/{project_id}/members", response_model=ProjectResponse)
def add_member(
    project_id: str,
    request_body: MemberRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    return ProjectResponse.model_validate(service.add_member(actor, project_id, request_body.user_id))


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    project_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
):
    service.delete_project(actor, project_id)
    return Response(status_code=204)
