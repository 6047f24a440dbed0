"""Step execution for external generator and installer commands.

Exports the Step Runner and the generator step plan.
"""

from .commands import (
    INSTALL_STEP,
    WORKSPACE_STEP,
    build_generator_steps,
    build_install_step,
    install_command,
    run_script_command,
)
from .step_runner import Step, StepMode, StepResult, StepRunner

__all__ = [
    "INSTALL_STEP",
    "WORKSPACE_STEP",
    "Step",
    "StepMode",
    "StepResult",
    "StepRunner",
    "build_generator_steps",
    "build_install_step",
    "install_command",
    "run_script_command",
]
