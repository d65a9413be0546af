from batchlog.commands.base import BatchCommand, BatchResult, CommandError
from batchlog.commands.sheets import SheetCommand

__all__ = [
    "BatchCommand",
    "BatchResult",
    "CommandError",
    "SheetCommand",
]
