"""Scenario Service - crisis types that incidents are attached to."""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from krisefikser.core.errors import NotFoundError, ValidationError
from krisefikser.db.models import Incident, Scenario


def list_scenarios(db: Session) -> list[Scenario]:
    return db.query(Scenario).order_by(Scenario.name).all()


def get_scenario(db: Session, scenario_id: UUID) -> Scenario:
    scenario = db.get(Scenario, scenario_id)
    if not scenario:
        raise NotFoundError("Scenario not found")
    return scenario


def create_scenario(
    db: Session,
    name: str,
    description: Optional[str] = None,
    to_do: Optional[str] = None,
    packing_list: Optional[str] = None,
    icon_name: Optional[str] = None,
) -> Scenario:
    scenario = Scenario(
        name=name,
        description=description,
        to_do=to_do,
        packing_list=packing_list,
        icon_name=icon_name,
    )
    db.add(scenario)
    db.commit()
    db.refresh(scenario)
    return scenario


def update_scenario(db: Session, scenario_id: UUID, updates: dict) -> Scenario:
    scenario = get_scenario(db, scenario_id)
    for key, value in updates.items():
        if hasattr(scenario, key) and key != "id":
            setattr(scenario, key, value)
    db.commit()
    db.refresh(scenario)
    return scenario


def delete_scenario(db: Session, scenario_id: UUID) -> None:
    scenario = get_scenario(db, scenario_id)
    in_use = db.query(Incident.id).filter(Incident.scenario_id == scenario.id).first()
    if in_use:
        raise ValidationError("Scenario is referenced by incidents")
    db.delete(scenario)
    db.commit()
