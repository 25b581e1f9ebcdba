"""
Ambulance Review Workflow.

Each ambulance moves through a recurring four-stage cycle:

    dailyCheck -> mechanical -> cleaning -> inventory -> (reset)

The four boolean flags on the ambulance always form a prefix of that
order. Completing a stage requires every earlier stage to be complete;
invalidating a stage invalidates every later one; completing inventory
closes the cycle and reopens a fresh one.

All functions here are pure over the ambulance object and perform no I/O.
"""

from datetime import datetime
from typing import Dict, List, Optional

from ambureview.app.core.exceptions import InvalidInputError, WorkflowOrderError
from ambureview.app.models.workflow_enums import WorkflowStage, CYCLE_COMPLETE

STAGE_ORDER: List[WorkflowStage] = [
    WorkflowStage.DAILY_CHECK,
    WorkflowStage.MECHANICAL,
    WorkflowStage.CLEANING,
    WorkflowStage.INVENTORY,
]

STAGE_FLAGS: Dict[WorkflowStage, str] = {
    WorkflowStage.DAILY_CHECK: "daily_check_completed",
    WorkflowStage.MECHANICAL: "mechanical_review_completed",
    WorkflowStage.CLEANING: "cleaning_completed",
    WorkflowStage.INVENTORY: "inventory_completed",
}

STAGE_TIMESTAMPS: Dict[WorkflowStage, str] = {
    WorkflowStage.DAILY_CHECK: "last_daily_check",
    WorkflowStage.MECHANICAL: "last_mechanical_review",
    WorkflowStage.CLEANING: "last_cleaning",
    WorkflowStage.INVENTORY: "last_inventory_check",
}


def parse_stage(value: str) -> WorkflowStage:
    """Resolve a wire stage name, raising 400 for anything unknown."""
    try:
        return WorkflowStage(value)
    except ValueError:
        raise InvalidInputError(
            f"Invalid workflow stage '{value}'",
            details={"allowed": [s.value for s in STAGE_ORDER]}
        )


def stage_flags(ambulance) -> List[bool]:
    return [bool(getattr(ambulance, STAGE_FLAGS[stage])) for stage in STAGE_ORDER]


def get_unlocked_screen(ambulance) -> str:
    """First pending stage in order, or "complete" once all four are done."""
    for stage in STAGE_ORDER:
        if not getattr(ambulance, STAGE_FLAGS[stage]):
            return stage.value
    return CYCLE_COMPLETE


def first_pending_before(ambulance, stage: WorkflowStage) -> Optional[WorkflowStage]:
    """The earliest incomplete stage that precedes `stage`, if any."""
    for earlier in STAGE_ORDER[:STAGE_ORDER.index(stage)]:
        if not getattr(ambulance, STAGE_FLAGS[earlier]):
            return earlier
    return None


def ensure_stage_unlocked(ambulance, stage: WorkflowStage) -> None:
    """Raise WorkflowOrderError if a prerequisite of `stage` is still pending."""
    pending = first_pending_before(ambulance, stage)
    if pending is not None:
        raise WorkflowOrderError(stage.value, pending.value)


def reset_cycle(ambulance) -> None:
    for stage in STAGE_ORDER:
        setattr(ambulance, STAGE_FLAGS[stage], False)


def complete_stage(ambulance, stage: WorkflowStage, value: bool, now: Optional[datetime] = None):
    """
    Set a stage flag and apply the cycle rules.

    - value=False: the stage and every later stage become False; earlier
      stages are left untouched.
    - value=True: requires all earlier stages to be True. The stage's
      "last completed" timestamp is set to `now`.
    - inventory=True: stamps last_inventory_check and resets all four flags.

    Returns the mutated ambulance.
    """
    now = now or datetime.utcnow()
    index = STAGE_ORDER.index(stage)

    if not value:
        for later in STAGE_ORDER[index:]:
            setattr(ambulance, STAGE_FLAGS[later], False)
        return ambulance

    ensure_stage_unlocked(ambulance, stage)

    setattr(ambulance, STAGE_TIMESTAMPS[stage], now)

    if stage == WorkflowStage.INVENTORY:
        reset_cycle(ambulance)
    else:
        setattr(ambulance, STAGE_FLAGS[stage], True)

    return ambulance


def workflow_snapshot(ambulance) -> dict:
    """Flags, timestamps and the unlocked screen, keyed by wire stage name."""
    return {
        "ambulance_id": ambulance.id,
        "stages": {
            stage.value: {
                "completed": bool(getattr(ambulance, STAGE_FLAGS[stage])),
                "last_completed_at": getattr(ambulance, STAGE_TIMESTAMPS[stage]),
            }
            for stage in STAGE_ORDER
        },
        "unlocked_screen": get_unlocked_screen(ambulance),
    }
