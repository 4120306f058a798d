"""Project budget and installment schedule management"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from agency_ledger.domain.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from agency_ledger.domain.installments import generate_installments, validate_installment_edit
from agency_ledger.domain.models import Actor, Installment, Project
from agency_ledger.infrastructure.database.models import ProjectRecord
from agency_ledger.infrastructure.database.repositories import (
    ProjectRepository,
    parse_uuid,
    project_to_domain,
)
from agency_ledger.services.access import require_admin
from agency_ledger.utils.clock import Clock
from agency_ledger.utils.money import to_money

logger = logging.getLogger(__name__)

MAX_INSTALLMENTS = 12


class ProjectService:
    """Creates projects and keeps their installment schedule consistent with the budget"""

    def __init__(self, db: Session, clock: Clock | None = None):
        self.db = db
        self.clock = clock or Clock()
        self.projects = ProjectRepository(db)

    def create_project(
        self,
        actor: Actor,
        name: str,
        budget: Optional[Decimal] = None,
        installment_count: int = 0,
        deadline: Optional[date] = None,
        member_ids: Iterable[str] = (),
    ) -> Project:
        """Create a project and, when budget and count are given, its installment plan"""
        require_admin(actor, "create projects")
        if not name or not name.strip():
            raise ValidationError("Project name is required")

        budget = self._validate_budget(budget)
        installments: List[Installment] = []
        if installment_count:
            self._validate_count(installment_count)
            if budget is None:
                raise ValidationError("A budget is required to generate installments")
            installments = generate_installments(budget, installment_count, deadline, self.clock.today())

        try:
            db_project = self.projects.create_project(
                name=name.strip(),
                budget=budget,
                deadline=deadline,
                installments=installments,
                member_ids=list(member_ids),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Project created", extra={"project_id": str(db_project.id), "user_id": actor.user_id})
        return project_to_domain(db_project)

    def get_project(self, actor: Actor, project_id: str) -> Project:
        db_project = self._load(project_id)
        if not actor.is_admin and actor.user_id not in {m.user_id for m in db_project.members}:
            raise PermissionDeniedError("Only project members can view this project")
        return project_to_domain(db_project)

    def list_projects(self, actor: Actor) -> List[Project]:
        projects = [project_to_domain(p) for p in self.projects.list_projects()]
        if actor.is_admin:
            return projects
        return [p for p in projects if actor.user_id in p.member_ids]

    def replan(
        self,
        actor: Actor,
        project_id: str,
        budget: Decimal,
        installment_count: int,
        deadline: Optional[date] = None,
    ) -> Project:
        """
        Change budget, installment count or deadline and regenerate the schedule.

        Paid state and due dates of installment numbers that survive the change
        are carried forward. Shrinking the plan below a paid installment is refused.
        """
        require_admin(actor, "edit installment plans")
        budget = self._validate_budget(budget)
        if budget is None:
            raise ValidationError("Budget must be positive")
        self._validate_count(installment_count)

        try:
            db_project = self._load(project_id, for_update=True)
            existing = project_to_domain(db_project).installments

            dropped_paid = [inst.number for inst in existing if inst.paid and inst.number > installment_count]
            if dropped_paid:
                raise ConflictError(
                    f"Cannot reduce the plan to {installment_count} installments: "
                    f"installments {dropped_paid} are already paid"
                )

            installments = generate_installments(
                budget, installment_count, deadline, self.clock.today(), existing=existing
            )
            db_project.budget = budget
            db_project.deadline = deadline
            self.projects.replace_installments(db_project, installments)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return project_to_domain(db_project)

    def edit_installments(self, actor: Actor, project_id: str, installments: Sequence[Installment]) -> Project:
        """
        Replace the schedule with hand-edited amounts and dates.

        Paid flags cannot be edited here: they are taken from the stored
        schedule for every number that already exists.
        """
        require_admin(actor, "edit installment plans")

        try:
            db_project = self._load(project_id, for_update=True)
            existing = {inst.number: inst for inst in project_to_domain(db_project).installments}

            edited = [
                Installment(
                    number=inst.number,
                    amount=to_money(inst.amount) if inst.amount is not None else None,
                    date=inst.date,
                    paid=existing[inst.number].paid if inst.number in existing else False,
                    paid_at=existing[inst.number].paid_at if inst.number in existing else None,
                )
                for inst in installments
            ]
            validate_installment_edit(db_project.budget, edited)

            edited_numbers = {inst.number for inst in edited}
            dropped_paid = sorted(n for n, inst in existing.items() if inst.paid and n not in edited_numbers)
            if dropped_paid:
                raise ConflictError(f"Paid installments {dropped_paid} cannot be removed")

            self.projects.replace_installments(db_project, sorted(edited, key=lambda i: i.number))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return project_to_domain(db_project)

    def add_member(self, actor: Actor, project_id: str, user_id: str) -> Project:
        require_admin(actor, "manage project members")
        if not user_id:
            raise ValidationError("user_id is required")
        try:
            db_project = self._load(project_id)
            self.projects.add_member(db_project, user_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return project_to_domain(db_project)

    def delete_project(self, actor: Actor, project_id: str) -> None:
        """Delete a project and its schedule; submissions and transactions are kept as history"""
        require_admin(actor, "delete projects")
        try:
            db_project = self._load(project_id)
            self.projects.delete_project(db_project)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _load(self, project_id: str, for_update: bool = False) -> ProjectRecord:
        project_uuid = parse_uuid(project_id)
        db_project = self.projects.get_project(project_uuid, for_update=for_update) if project_uuid else None
        if db_project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return db_project

    @staticmethod
    def _validate_budget(budget: Optional[Decimal]) -> Optional[Decimal]:
        if budget is None:
            return None
        budget = to_money(budget)
        if budget <= 0:
            raise ValidationError("Budget must be positive")
        return budget

    @staticmethod
    def _validate_count(count: int) -> None:
        if count <= 0 or count > MAX_INSTALLMENTS:
            raise ValidationError(f"Installment count must be between 1 and {MAX_INSTALLMENTS}")
