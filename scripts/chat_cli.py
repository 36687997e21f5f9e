#!/usr/bin/env python3
"""Interactive chat CLI for the AI advisor service."""

import sys
from pathlib import Path

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from advisor.models.messages import Message
from advisor.rendering import render_message, transcript_text
from advisor.state.conversation import ConversationState


class ChatCLI:
    """Interactive chat interface for the AI advisor service."""

    def __init__(self, base_url: str = "http://localhost:8000", view: str | None = None):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.view = view
        self.session_id: str | None = None
        self.shown_message_ids: set[str] = set()
        self.transcript: list[Message] = []
        self.console = Console()
        self.client = httpx.Client(timeout=180.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Quantum AI Advisor - Interactive Chat[/bold blue]\n"
                "Type your messages to chat with the advisor.\n"
                "Commands: /help, /prompts, /tools, /save, /reset, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]Connected to the advisor service[/green]\n")
        self._show_prompts()

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                elif command == "/prompts":
                    self._show_prompts()
                elif command == "/tools":
                    self._show_tools()
                elif command.startswith("/save"):
                    self._save_transcript(user_input.strip()[len("/save") :].strip())
                elif command == "/reset":
                    self._reset()
                elif command:
                    self._send_message(user_input)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _send_message(self, message: str) -> None:
        """Send a message and render every message the turn added."""
        payload: dict = {"message": message}
        if self.session_id:
            payload["session_id"] = self.session_id
        if self.view:
            payload["context"] = {"current_view": self.view}

        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                response = self.client.post(f"{self.base_url}/conversation", json=payload)
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return

        if response.status_code != 200:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
            return

        data = response.json()
        self.session_id = data["session_id"]
        self._display_state(ConversationState.model_validate(data["state"]))

    def _display_state(self, state: ConversationState) -> None:
        # The user's own message is already on screen
        for message in state.messages:
            if message.id in self.shown_message_ids:
                continue
            self.shown_message_ids.add(message.id)
            self.transcript.append(message)
            if message.role != "user":
                self.console.print(render_message(message))

        if state.error:
            self.console.print(Panel(state.error, title="[bold red]Error[/bold red]", border_style="red"))

    def _reset(self) -> None:
        if not self.session_id:
            self.console.print("[yellow]Nothing to reset yet[/yellow]")
            return

        response = self.client.post(f"{self.base_url}/conversation/{self.session_id}/reset")
        if response.status_code != 200:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
            self.session_id = None
            return

        self.shown_message_ids.clear()
        self.transcript.clear()
        self.console.print("[yellow]Conversation reset[/yellow]")
        self._display_state(ConversationState.model_validate(response.json()["state"]))

    def _save_transcript(self, filename: str) -> None:
        path = Path(filename or "advisor_transcript.txt")
        path.write_text(transcript_text(self.transcript), encoding="utf-8")
        self.console.print(f"[green]Saved {len(self.transcript)} messages to {path}[/green]")

    def _show_prompts(self) -> None:
        """Show example prompts for the current view."""
        params = {"view": self.view} if self.view else {}
        try:
            prompts = self.client.get(f"{self.base_url}/prompts", params=params).json()["prompts"]
        except httpx.HTTPError:
            return

        prompt_list = "\n".join(f"• {prompt}" for prompt in prompts)
        self.console.print(Panel(prompt_list, title="[yellow]Try asking[/yellow]", border_style="yellow"))

    def _show_tools(self) -> None:
        tools = self.client.get(f"{self.base_url}/tools").json()["tools"]
        tool_list = "\n".join(f"• [bold]{tool['name']}[/bold]: {tool['description']}" for tool in tools)
        self.console.print(Panel(tool_list, title="[cyan]Available Tools[/cyan]", border_style="cyan"))

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /prompts - Show example prompts
• /tools - List the tools the advisor can call
• /save [file] - Save the conversation as plain text
• /reset - Start a new conversation
• /quit or /exit - Exit the chat

[bold]Tips:[/bold]
• Ask about your balance, spending, investments or treasury ledger accounts
• Ask for a chart or table to see rich content
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    view = sys.argv[2] if len(sys.argv) > 2 else None

    chat = ChatCLI(base_url, view)
    chat.start()


if __name__ == "__main__":
    main()
