import json
import sys
from typing import Any, List, Optional, Sequence, TextIO

from tabulate import tabulate

SUCCESS_MARK = "✔"
FAILURE_MARK = "✘"


class Reporter:
    """Output sink for user-facing results"""

    def info(self, message: str, obj: Any = None) -> None:
        raise NotImplementedError

    def table(self, rows: Sequence[Sequence[Any]], headers: Sequence[str]) -> None:
        raise NotImplementedError

    def error(self, message: str) -> None:
        raise NotImplementedError


def _render(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    if hasattr(obj, "to_dict"):
        obj = obj.to_dict()
    return json.dumps(obj, indent=2, default=str)


class ConsoleReporter(Reporter):
    """Prints results to stdout and errors to stderr"""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def info(self, message: str, obj: Any = None) -> None:
        print(message, file=self.out)
        if obj is not None:
            print(_render(obj), file=self.out)

    def table(self, rows: Sequence[Sequence[Any]], headers: Sequence[str]) -> None:
        print(tabulate(rows, headers=headers, tablefmt="grid"), file=self.out)

    def error(self, message: str) -> None:
        print(f"{FAILURE_MARK} {message}", file=self.err)


class RecordingReporter(Reporter):
    """Keeps every report in memory"""

    def __init__(self):
        self.messages: List[tuple] = []
        self.tables: List[tuple] = []
        self.errors: List[str] = []

    def info(self, message: str, obj: Any = None) -> None:
        self.messages.append((message, obj))

    def table(self, rows: Sequence[Sequence[Any]], headers: Sequence[str]) -> None:
        self.tables.append((list(headers), [list(row) for row in rows]))

    def error(self, message: str) -> None:
        self.errors.append(message)
