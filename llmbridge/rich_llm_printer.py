"""
Rich printer module for displaying canonical LLM replies.
"""
import json
from typing import Any, AsyncIterable, Dict, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from .streaming import StreamAccumulator
from .types import CanonicalMessage

console = Console()


def _metadata_panel(message: CanonicalMessage) -> Optional[Panel]:
    meta: Dict[str, Any] = {
        k: v for k, v in message.metadata.items()
        if k not in ("is_stream_chunk", "tool_call_indices")
    }
    if message.usage is not None:
        meta["usage"] = {
            "prompt_tokens": message.usage.prompt_tokens,
            "completion_tokens": message.usage.completion_tokens,
            "total_tokens": message.usage.total_tokens,
        }
    if not meta:
        return None
    metadata_display = Syntax(
        json.dumps(meta, indent=2, default=str),
        "json",
        theme="lightbulb",
        background_color="default",
    )
    return Panel(metadata_display, title="[bold]Metadata[/bold]", border_style="dim")


def _tool_calls_table(message: CanonicalMessage) -> Optional[Table]:
    if not message.tool_calls:
        return None
    table = Table(title="Tool calls", show_lines=False, expand=True)
    table.add_column("id", style="dim")
    table.add_column("function", style="bold cyan")
    table.add_column("arguments")
    for call in message.tool_calls:
        table.add_row(call.id, call.function_name, call.arguments_json)
    return table


class RichStreamPrinter:
    """
    Displays a canonical stream live using rich.

    Attributes:
        title: Title for the display panel
        show_metadata: Whether to show metadata at the end
        code_theme: Theme for code blocks
        inline_code_theme: Theme for inline code
        refresh_rate: Refresh rate for Live display
        show_final_title: Whether to change title to "Final Response" at the end
        border_style: Border style while streaming
    """

    def __init__(
        self,
        title: str = "Streaming Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        inline_code_theme: str = "monokai",
        refresh_rate: int = 30,
        show_final_title: bool = True,
        border_style: str = "blue",
        output: Optional[Console] = None,
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.inline_code_theme = inline_code_theme
        self.refresh_rate = refresh_rate
        self.show_final_title = show_final_title
        self.border_style = border_style
        self.console = output or console
        self._accumulator = StreamAccumulator()

    async def print_stream(
        self,
        stream: AsyncIterable[Optional[CanonicalMessage]],
    ) -> CanonicalMessage:
        """
        Render a stream as it arrives and return the assembled message.

        None chunks are skipped. Rendering stops at the chunk flagged complete.

        Args:
            stream: Output of `stream()` / `chat_stream()`.

        Returns:
            CanonicalMessage: The accumulated assistant reply.
        """
        self._accumulator = StreamAccumulator()
        panel = Panel("", border_style=self.border_style)

        with Live(panel, refresh_per_second=self.refresh_rate, console=self.console) as live:
            async for chunk in stream:
                if chunk is None:
                    continue
                self._accumulator.feed(chunk)
                self._update_display(live, is_final=self._accumulator.is_complete)
                if self._accumulator.is_complete:
                    break
            if not self._accumulator.is_complete:
                self._update_display(live, is_final=True)

        return self._accumulator.result()

    def _update_display(self, live: Live, is_final: bool = False) -> None:
        """Update the Live display with current content."""
        if is_final and self.show_final_title:
            title = "[bold]Final Response[/bold]"
        else:
            title = f"[bold]{self.title}[/bold]"

        live.update(
            Panel(
                self._build_content(is_final),
                title=title,
                border_style="green" if is_final else self.border_style,
                padding=(1, 2),
            )
        )

    def _build_content(self, is_final: bool) -> Any:
        """Build the panel content."""
        message = self._accumulator.result()
        renderables = []

        if message.content and message.content.strip():
            renderables.append(Markdown(
                message.content,
                code_theme=self.code_theme,
                inline_code_theme=self.inline_code_theme,
            ))

        table = _tool_calls_table(message)
        if table is not None:
            renderables.append(table)

        if not renderables:
            return Text("(waiting for response...)", style="dim italic")

        if is_final and self.show_metadata:
            metadata = _metadata_panel(message)
            if metadata is not None:
                renderables.append(metadata)

        return Group(*renderables)

    def get_full_text(self) -> str:
        """Get the full assembled text."""
        return self._accumulator.text


class RichPrinter:
    """
    Displays a single canonical reply using rich.

    Designed to work with the `chat` method output from UnifiedChatClient.
    """

    def __init__(
        self,
        title: str = "Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        inline_code_theme: str = "monokai",
        border_style: str = "green",
        output: Optional[Console] = None,
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.inline_code_theme = inline_code_theme
        self.border_style = border_style
        self.console = output or console

    def print_message(self, message: CanonicalMessage) -> CanonicalMessage:
        """
        Display a reply with rich formatting.

        Returns:
            The same message, for chaining.
        """
        title_parts = [f"[bold]{self.title}[/bold]"]
        provider = message.metadata.get("provider")
        if provider:
            title_parts.append(f"[dim]({provider})[/dim]")

        renderables = []
        if message.content and message.content.strip():
            renderables.append(Markdown(
                message.content,
                code_theme=self.code_theme,
                inline_code_theme=self.inline_code_theme,
            ))
        table = _tool_calls_table(message)
        if table is not None:
            renderables.append(table)
        if not renderables:
            renderables.append(Text("(empty response)", style="dim italic"))
        if self.show_metadata:
            metadata = _metadata_panel(message)
            if metadata is not None:
                renderables.append(metadata)

        self.console.print(
            Panel(
                Group(*renderables),
                title=" ".join(title_parts),
                border_style=self.border_style,
                padding=(1, 2),
            )
        )
        return message
