from fixtureforge.executors.base import TableExecutor
from fixtureforge.executors.delete import DeleteAllExecutor, DeleteExecutor
from fixtureforge.executors.insert import InsertExecutor
from fixtureforge.executors.refresh import RefreshExecutor
from fixtureforge.executors.truncate import TruncateExecutor
from fixtureforge.executors.update import UpdateExecutor

__all__ = [
    "TableExecutor",
    "InsertExecutor",
    "UpdateExecutor",
    "DeleteExecutor",
    "DeleteAllExecutor",
    "TruncateExecutor",
    "RefreshExecutor",
]
