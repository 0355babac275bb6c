"""Terminal app for viewing and editing JSON with rendered newline escapes."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Header, Static

from jsonnl.config import Settings
from jsonnl.sync import EngineRegistry
from jsonnl.widget import NewlineJsonView

SAMPLE_JSON = """\
{
    "title": "jsonnl",
    "message": "Hello\\nWorld",
    "poem": "Roses are red,\\nviolets are blue,\\nthis string has three lines.",
    "path": "C:\\\\new\\\\folder",
    "mixed": "a literal \\\\n stays, a real\\nbreak does not"
}"""


class NewlineJsonApp(App):
    """TUI app that wraps the NewlineJsonView widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #editor {
        height: 1fr;
        border: solid $accent;
    }
    #help-bar {
        height: auto;
        padding: 0 1;
        color: $text-muted;
        background: $surface;
        border-top: solid $accent 50%;
    }
    """

    TITLE = "JSON Newline View"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        file_path: str = "",
        initial_content: str = "",
        settings: Settings | None = None,
        read_only: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.file_path = file_path
        self.initial_content = initial_content
        self.settings = settings or Settings()
        self.registry = EngineRegistry(self.settings)
        self.read_only = read_only

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield NewlineJsonView(
            self.initial_content,
            doc_id=self.file_path or "untitled",
            registry=self.registry,
            read_only=self.read_only,
            id="editor",
        )
        yield Static(
            "[b]Move:[/b] arrows home end  "
            "[b]Save:[/b] ctrl+s  [b]Go to error:[/b] ctrl+g  [b]Quit:[/b] esc",
            id="help-bar",
        )

    def on_mount(self) -> None:
        self.sub_title = self.file_path or "[sample]"
        self.query_one("#editor").focus()

    def on_newline_json_view_quit(self, event: NewlineJsonView.Quit) -> None:
        self.exit()

    def on_newline_json_view_document_validated(
        self, event: NewlineJsonView.DocumentValidated
    ) -> None:
        if not event.valid:
            hint = "  (ctrl+g to jump)" if event.offset is not None else ""
            self.notify(f"Invalid JSON: {event.error}{hint}", severity="error", timeout=6)

    def on_newline_json_view_save_requested(
        self, event: NewlineJsonView.SaveRequested
    ) -> None:
        if not self.file_path:
            self.notify("No file name", severity="warning")
            return
        try:
            Path(self.file_path).write_text(event.content, encoding="utf-8")
        except OSError as exc:
            self.notify(f"Save failed: {exc}", severity="error", timeout=6)
            return
        self.notify(f"Saved {self.file_path}", severity="information")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="jnl",
        description="Show JSON newline escapes as real line breaks",
    )
    parser.add_argument("file", nargs="?", default="", help="JSON file to open")
    parser.add_argument(
        "-R", "--read-only",
        action="store_true",
        default=False,
        help="open in read-only mode",
    )
    parser.add_argument("--config", default="", help="settings JSON file")
    parser.add_argument("--log-file", default="", help="write logs to this file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log level for --log-file",
    )
    args = parser.parse_args()

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=args.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        # the TUI owns the terminal
        logging.getLogger("jsonnl").addHandler(logging.NullHandler())

    settings = Settings()
    if args.config:
        try:
            settings = Settings.load(args.config)
        except (OSError, ValueError) as exc:
            print(f"jnl: {args.config}: {exc}", file=sys.stderr)
            sys.exit(2)
    if not settings.accepts("json"):
        print("jnl: json documents are disabled by the settings", file=sys.stderr)
        sys.exit(2)

    file_path: str = args.file
    initial_content = SAMPLE_JSON
    if file_path:
        path = Path(file_path)
        try:
            initial_content = path.read_text(encoding="utf-8") if path.exists() else "{}"
        except (PermissionError, UnicodeDecodeError) as exc:
            print(f"jnl: {exc}", file=sys.stderr)
            sys.exit(1)

    app = NewlineJsonApp(
        file_path=file_path,
        initial_content=initial_content,
        settings=settings,
        read_only=args.read_only,
    )
    app.run()


if __name__ == "__main__":
    main()
