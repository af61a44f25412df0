"""proctrack - Textual front-end for the process engine."""

from enum import Enum

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from proctrack.engine import ProcessEngine
from proctrack.errors import TerminationError
from proctrack.models import ProcessSnapshot

INTERVAL_CHOICES = (1.0, 2.0, 5.0)
UI_POLL_PERIOD = 0.5


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    USER = "user"


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


class StatusBar(Static):
    """One-line summary of the latest refresh."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatusBar."""
        super().__init__(*args, **kwargs)
        self._process_count: int = 0
        self._interval: float = 0.0
        self._error: Exception | None = None

    def show(
        self,
        process_count: int,
        interval: float,
        error: Exception | None = None,
    ) -> None:
        """Render process count, refresh rate and any sampling failure."""
        self._process_count = process_count
        self._interval = interval
        self._error = error

        text = f"Processes: {process_count}  Refresh rate: {interval:g}s"
        if error is not None:
            text += f"  Stale: {error}"
        self.update(text)


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("Name", key="name", width=20)
        table.add_column("User", key="user", width=10)
        table.add_column("CPU %", key="cpu", width=8)
        table.add_column("MEM %", key="mem", width=8)
        table.add_column("Memory", key="rss", width=8)

    def selected_pid(self) -> int | None:
        """PID of the row under the cursor, if any."""
        table = self.query_one("#process-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        return int(row_key.value)

    def update_processes(self, processes: tuple[ProcessSnapshot, ...]) -> None:
        """
        Update the process table with new data.

        The table is rebuilt in sorted order; the cursor stays on the same
        process when it is still listed.
        """
        table = self.query_one("#process-table", DataTable)
        selected = self.selected_pid()

        table.clear()
        for proc in self._sort_processes(processes):
            table.add_row(
                str(proc.pid),
                proc.name[:20],
                proc.owner[:10],
                f"{proc.cpu_percent:5.1f}",
                f"{proc.memory_percent:5.1f}",
                format_bytes(proc.resident_memory),
                key=str(proc.pid),
            )
        self._current_pids = {proc.pid for proc in processes}

        if selected in self._current_pids:
            table.move_cursor(row=table.get_row_index(str(selected)))

    def _sort_processes(self, processes: tuple[ProcessSnapshot, ...]) -> list[ProcessSnapshot]:
        """Sort processes based on the current sort key."""
        key_func = {
            SortKey.CPU: lambda p: p.cpu_percent,
            SortKey.MEM: lambda p: p.memory_percent,
            SortKey.PID: lambda p: p.pid,
            SortKey.USER: lambda p: p.owner.lower(),
        }
        return sorted(processes, key=key_func[self._sort_key], reverse=self._sort_reverse)


class ProctrackApp(App):
    """Main proctrack application."""

    TITLE = "proctrack"
    SUB_TITLE = "System Process Tracker"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("k", "kill", "Kill Process"),
        ("i", "interval", "Refresh rate"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, engine: ProcessEngine | None = None) -> None:
        """Initialize the ProctrackApp."""
        super().__init__()
        self._engine = engine if engine is not None else ProcessEngine(interval=INTERVAL_CHOICES[1])
        self._shown_generation = 0
        self._shown_error: Exception | None = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusBar("Loading processes...", id="status", markup=False)
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the engine and poll it for new snapshots."""
        self._engine.start()
        self.set_interval(UI_POLL_PERIOD, self._check_for_updates)

    def on_unmount(self) -> None:
        """Stop the engine when the app goes away."""
        self._engine.stop()

    def _check_for_updates(self) -> None:
        """Refresh the UI when the engine has published or failed since the last check."""
        generation = self._engine.generation
        error = self._engine.last_error
        if generation == self._shown_generation and error is self._shown_error:
            return

        processes = self._engine.snapshot()
        if generation != self._shown_generation:
            self.query_one(ProcessTable).update_processes(processes)
        self.query_one(StatusBar).show(len(processes), self._engine.interval, error)
        self._shown_generation = generation
        self._shown_error = error

    def action_refresh(self) -> None:
        """Ask the engine for a refresh now."""
        self._engine.request_refresh()

    def action_kill(self) -> None:
        """Kill the selected process."""
        pid = self.query_one(ProcessTable).selected_pid()
        if pid is None:
            return
        try:
            self._engine.terminate(pid)
        except TerminationError as exc:
            self.notify(str(exc), severity="error")
            return
        self.notify(f"Killed {pid}")
        self._engine.request_refresh()

    def action_interval(self) -> None:
        """Cycle through the refresh rates."""
        current = self._engine.interval
        later = [choice for choice in INTERVAL_CHOICES if choice > current]
        interval = later[0] if later else INTERVAL_CHOICES[0]
        self._engine.set_interval(interval)
        self.query_one(StatusBar).show(len(self._engine.snapshot()), interval, self._engine.last_error)
        self.notify(f"Refresh rate: {interval:g}s")

    def action_sort(self) -> None:
        """Cycle through sort keys and re-sort the current snapshot."""
        process_table = self.query_one(ProcessTable)
        new_sort_key = process_table.cycle_sort()
        process_table.update_processes(self._engine.snapshot())
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._engine.stop()
        self.exit()


def main() -> None:
    """Entry point for proctrack application."""
    app = ProctrackApp()
    app.run()


if __name__ == "__main__":
    main()
