from tickreplay.execution.simulator import ExecutionSimulator, Fill

__all__ = ["ExecutionSimulator", "Fill"]
