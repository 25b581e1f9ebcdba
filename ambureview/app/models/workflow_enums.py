"""
Workflow-related enumerations.
"""

import enum


class WorkflowStage(str, enum.Enum):
    """
    Review cycle stages, in the order an ambulance must pass them.

    The values are the stage names used on the wire.
    """
    DAILY_CHECK = "dailyCheck"
    MECHANICAL = "mechanical"
    CLEANING = "cleaning"
    INVENTORY = "inventory"


# Returned by the unlocked-screen lookup once every stage is done
CYCLE_COMPLETE = "complete"
