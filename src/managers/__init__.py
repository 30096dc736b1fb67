from .progress_channel import ProgressChannel, ProgressReporter
from .run_manager import RunContext, RunManager

__all__ = ['RunManager', 'RunContext', 'ProgressChannel', 'ProgressReporter']
