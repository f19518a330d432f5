"""Scenarios Router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from krisefikser.core.deps import get_current_user, get_db, require_roles
from krisefikser.db.enums import ROLES_CAN_MANAGE_SCENARIOS
from krisefikser.schemas.incident import ScenarioCreate, ScenarioRead, ScenarioUpdate
from krisefikser.services import scenario_service

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


@router.get("", response_model=list[ScenarioRead])
def list_scenarios(user=Depends(get_current_user), db: Session = Depends(get_db)):
    return scenario_service.list_scenarios(db)


@router.get("/{scenario_id}", response_model=ScenarioRead)
def get_scenario(
    scenario_id: UUID,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return scenario_service.get_scenario(db, scenario_id)


@router.post("", response_model=ScenarioRead, status_code=201)
def create_scenario(
    data: ScenarioCreate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_SCENARIOS)),
    db: Session = Depends(get_db),
):
    return scenario_service.create_scenario(db, **data.model_dump())


@router.patch("/{scenario_id}", response_model=ScenarioRead)
def update_scenario(
    scenario_id: UUID,
    data: ScenarioUpdate,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_SCENARIOS)),
    db: Session = Depends(get_db),
):
    return scenario_service.update_scenario(db, scenario_id, data.model_dump(exclude_unset=True))


@router.delete("/{scenario_id}", status_code=204)
def delete_scenario(
    scenario_id: UUID,
    admin=Depends(require_roles(ROLES_CAN_MANAGE_SCENARIOS)),
    db: Session = Depends(get_db),
):
    scenario_service.delete_scenario(db, scenario_id)
    return Response(status_code=204)
