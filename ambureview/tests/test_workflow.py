"""
Review workflow state machine tests.

Exercises the pure stage rules on a plain Ambulance object (no database).
"""

from datetime import datetime

import pytest

from ambureview.app.core.exceptions import WorkflowOrderError, InvalidInputError
from ambureview.app.domain.workflow.state_machine import (
    complete_stage, get_unlocked_screen, parse_stage, stage_flags, workflow_snapshot
)
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.workflow_enums import WorkflowStage, CYCLE_COMPLETE

NOW = datetime(2024, 3, 10, 8, 30)


def fresh_ambulance(flags=(False, False, False, False)) -> Ambulance:
    daily, mechanical, cleaning, inventory = flags
    return Ambulance(
        id=1,
        code="AMB-01",
        plate="1234-ABC",
        daily_check_completed=daily,
        mechanical_review_completed=mechanical,
        cleaning_completed=cleaning,
        inventory_completed=inventory,
    )


def test_fresh_ambulance_unlocks_daily_check():
    assert get_unlocked_screen(fresh_ambulance()) == "dailyCheck"


@pytest.mark.parametrize("flags, expected", [
    ((True, False, False, False), "mechanical"),
    ((True, True, False, False), "cleaning"),
    ((True, True, True, False), "inventory"),
    ((True, True, True, True), CYCLE_COMPLETE),
])
def test_unlocked_screen_is_first_pending_stage(flags, expected):
    assert get_unlocked_screen(fresh_ambulance(flags)) == expected


def test_full_cycle_resets_all_flags():
    ambulance = fresh_ambulance()
    for stage in (WorkflowStage.DAILY_CHECK, WorkflowStage.MECHANICAL, WorkflowStage.CLEANING):
        complete_stage(ambulance, stage, True, NOW)

    assert stage_flags(ambulance) == [True, True, True, False]

    complete_stage(ambulance, WorkflowStage.INVENTORY, True, NOW)

    assert stage_flags(ambulance) == [False, False, False, False]
    assert ambulance.last_inventory_check == NOW
    assert ambulance.last_daily_check == NOW
    assert get_unlocked_screen(ambulance) == "dailyCheck"


def test_completing_out_of_order_is_rejected():
    ambulance = fresh_ambulance()

    with pytest.raises(WorkflowOrderError) as exc:
        complete_stage(ambulance, WorkflowStage.CLEANING, True, NOW)

    assert exc.value.status_code == 409
    assert exc.value.details["unlocked_screen"] == "dailyCheck"
    assert stage_flags(ambulance) == [False, False, False, False]
    assert ambulance.last_cleaning is None


def test_inventory_cannot_close_incomplete_cycle():
    ambulance = fresh_ambulance((True, True, False, False))

    with pytest.raises(WorkflowOrderError):
        complete_stage(ambulance, WorkflowStage.INVENTORY, True, NOW)

    assert stage_flags(ambulance) == [True, True, False, False]


def test_invalidating_a_stage_clears_later_stages():
    ambulance = fresh_ambulance((True, True, True, False))

    complete_stage(ambulance, WorkflowStage.MECHANICAL, False, NOW)

    assert stage_flags(ambulance) == [True, False, False, False]
    assert get_unlocked_screen(ambulance) == "mechanical"


def test_invalidating_keeps_timestamps():
    ambulance = fresh_ambulance()
    complete_stage(ambulance, WorkflowStage.DAILY_CHECK, True, NOW)

    complete_stage(ambulance, WorkflowStage.DAILY_CHECK, False, datetime(2024, 3, 11))

    assert ambulance.daily_check_completed is False
    assert ambulance.last_daily_check == NOW


def test_recompleting_a_done_stage_refreshes_timestamp():
    ambulance = fresh_ambulance()
    complete_stage(ambulance, WorkflowStage.DAILY_CHECK, True, NOW)
    later = datetime(2024, 3, 10, 12, 0)

    complete_stage(ambulance, WorkflowStage.DAILY_CHECK, True, later)

    assert ambulance.last_daily_check == later
    assert stage_flags(ambulance) == [True, False, False, False]


def test_flags_always_form_a_prefix():
    ambulance = fresh_ambulance()
    moves = [
        (WorkflowStage.DAILY_CHECK, True),
        (WorkflowStage.MECHANICAL, True),
        (WorkflowStage.DAILY_CHECK, False),
        (WorkflowStage.DAILY_CHECK, True),
        (WorkflowStage.MECHANICAL, True),
        (WorkflowStage.CLEANING, True),
        (WorkflowStage.CLEANING, False),
    ]
    for stage, value in moves:
        complete_stage(ambulance, stage, value, NOW)
        flags = stage_flags(ambulance)
        assert flags == sorted(flags, reverse=True)


def test_parse_stage_accepts_wire_names():
    assert parse_stage("dailyCheck") == WorkflowStage.DAILY_CHECK
    assert parse_stage("inventory") == WorkflowStage.INVENTORY


def test_parse_stage_rejects_unknown_name():
    with pytest.raises(InvalidInputError) as exc:
        parse_stage("foo")

    assert exc.value.status_code == 400
    assert "dailyCheck" in exc.value.details["allowed"]


def test_snapshot_reports_stages_by_wire_name():
    ambulance = fresh_ambulance()
    complete_stage(ambulance, WorkflowStage.DAILY_CHECK, True, NOW)

    snapshot = workflow_snapshot(ambulance)

    assert snapshot["unlocked_screen"] == "mechanical"
    assert snapshot["stages"]["dailyCheck"] == {"completed": True, "last_completed_at": NOW}
    assert snapshot["stages"]["inventory"]["completed"] is False
