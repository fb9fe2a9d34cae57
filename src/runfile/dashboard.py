"""Terminal dashboard: one panel per host with its task checklist."""

from __future__ import annotations

from collections.abc import Sequence

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Footer, Label, RichLog, Static

from .orchestrator import HostResult, HostStatus, Orchestrator, RunResult
from .tasks import Task
from .transport import ConnectionConfig, Dialer

STATUS_STYLES = {
    HostStatus.PENDING: "dim",
    HostStatus.CONNECTING: "yellow",
    HostStatus.RUNNING: "yellow",
    HostStatus.SUCCESS: "green",
    HostStatus.FAILED: "red",
}

TASK_MARKS = {
    "pending": ("·", "dim"),
    "current": ("▶", "yellow"),
    "done": ("✔", "green"),
    "failed": ("✘", "bold red"),
}


def task_states(result: HostResult, task_count: int) -> list[str]:
    """Classify each task of a host as pending, current, done or failed."""
    states = []
    for i in range(task_count):
        if result.failed_task_index is not None:
            if i < result.failed_task_index:
                state = "done"
            elif i == result.failed_task_index:
                state = "failed"
            else:
                state = "pending"
        elif result.status == HostStatus.SUCCESS:
            state = "done"
        elif result.status == HostStatus.RUNNING:
            if i < result.current_task_index:
                state = "done"
            elif i == result.current_task_index:
                state = "current"
            else:
                state = "pending"
        else:
            state = "pending"
        states.append(state)
    return states


def progress_text(result: HostResult, task_count: int) -> str:
    """Short progress note for a panel header."""
    if result.failed_task_index is not None:
        return f"failed at task {result.failed_task_index}"
    if result.status == HostStatus.FAILED:
        return "connection failed"
    if result.status == HostStatus.SUCCESS:
        return f"{task_count}/{task_count} tasks"
    if result.status == HostStatus.RUNNING:
        return f"task {result.current_task_index + 1}/{task_count}"
    return result.status.value


def summary_text(result: RunResult) -> str:
    if result.ok:
        return f"All {len(result.hosts)} hosts succeeded"
    return f"{result.failures} failed: {', '.join(result.failed_hosts)}"


class HostPanel(Vertical):
    """Header, task checklist and output of one host."""

    def __init__(self, address: str, user: str, tasks: Sequence[Task]) -> None:
        super().__init__(classes="host")
        self.address = address
        self.user = user
        self.tasks = tasks
        self.header_text = ""

    def compose(self) -> ComposeResult:
        yield Label(classes="header")
        yield Static(classes="tasks")
        yield RichLog(classes="output", wrap=True, auto_scroll=True)

    def on_mount(self) -> None:
        self.show(HostResult(address=self.address))

    def show(self, result: HostResult) -> None:
        """Redraw the header and checklist from ``result``."""
        style = STATUS_STYLES[result.status]
        self.header_text = (
            f"{self.user}@{self.address} {result.status.value} - "
            f"{progress_text(result, len(self.tasks))}"
        )
        self.query_one(".header", Label).update(f"[{style}]{escape(self.header_text)}[/]")

        lines = []
        for i, (task, state) in enumerate(zip(self.tasks, task_states(result, len(self.tasks)))):
            mark, mark_style = TASK_MARKS[state]
            lines.append(f"[{mark_style}]{mark}[/] {i} {escape(task.raw)}")
        self.query_one(".tasks", Static).update("\n".join(lines))

    def append_output(self, line: str) -> None:
        log = self.query_one(".output", RichLog)
        if line.startswith("ERROR:"):
            log.write(Text(line, style="bold red"))
        elif line.startswith("Executing Task"):
            log.write(Text(line, style="cyan"))
        else:
            log.write(Text(line))


class StatusBar(Static):
    """Finished host count and, once done, the run summary."""

    completed: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)
    summary: reactive[str] = reactive("Running...")

    def render(self) -> str:
        return f"{self.completed}/{self.total} hosts finished | {escape(self.summary)} | q to quit"


class HostOutput(Message):
    def __init__(self, host: str, line: str) -> None:
        super().__init__()
        self.host = host
        self.line = line


class HostStatusChange(Message):
    def __init__(self, host: str, status: HostStatus) -> None:
        super().__init__()
        self.host = host
        self.status = status


class Dashboard(App):
    """Runs the orchestrator in a worker and renders its callbacks."""

    TITLE = "runfile"
    CSS = """
    HostPanel {
        border: round $primary;
        height: auto;
        max-height: 24;
    }

    HostPanel .header {
        text-style: bold;
        padding: 0 1;
    }

    HostPanel .tasks {
        padding: 0 1;
    }

    HostPanel .output {
        height: 8;
        padding: 0 1;
    }

    StatusBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [("q", "quit", "Quit")]

    def __init__(
        self,
        tasks: Sequence[Task],
        hosts: Sequence[str],
        dial: Dialer,
        connection: ConnectionConfig,
        **orchestrator_options,
    ) -> None:
        super().__init__()
        self.orchestrator = Orchestrator(
            tasks,
            hosts,
            dial,
            connection,
            on_output=lambda host, line: self.post_message(HostOutput(host, line)),
            on_status=lambda host, status: self.post_message(HostStatusChange(host, status)),
            **orchestrator_options,
        )
        self.panels: dict[str, HostPanel] = {}
        self.result: RunResult | None = None

    def compose(self) -> ComposeResult:
        for host in self.orchestrator.hosts:
            panel = HostPanel(host, self.orchestrator.connection.user, self.orchestrator.tasks)
            self.panels[host] = panel
            yield panel
        yield StatusBar()
        yield Footer()

    def on_mount(self) -> None:
        self.query_one(StatusBar).total = len(self.orchestrator.hosts)
        self.run_worker(self._run_orchestrator(), exclusive=True)

    async def _run_orchestrator(self) -> None:
        self.result = await self.orchestrator.run_all()
        self.query_one(StatusBar).summary = summary_text(self.result)

    def _refresh_panel(self, host: str) -> None:
        result = self.orchestrator.results.get(host)
        if result is not None and host in self.panels:
            self.panels[host].show(result)

    def on_host_output(self, message: HostOutput) -> None:
        if message.host in self.panels:
            self.panels[message.host].append_output(message.line)
        self._refresh_panel(message.host)

    def on_host_status_change(self, message: HostStatusChange) -> None:
        self._refresh_panel(message.host)
        if message.status in (HostStatus.SUCCESS, HostStatus.FAILED):
            self.query_one(StatusBar).completed += 1
