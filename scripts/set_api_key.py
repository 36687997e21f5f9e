#!/usr/bin/env python3
"""Store or remove the Anthropic API key used by the advisor service."""

import sys

from rich.console import Console
from rich.prompt import Prompt

from advisor.services.credentials import CredentialStore

PROVIDER = "anthropic"


def main():
    """Main entry point: `set_api_key.py` prompts for a key, `set_api_key.py --delete` removes it."""
    console = Console()
    store = CredentialStore()

    if "--delete" in sys.argv[1:]:
        if store.delete(PROVIDER):
            console.print(f"[yellow]Removed the stored {PROVIDER} key from {store.path}[/yellow]")
        else:
            console.print(f"[dim]No {PROVIDER} key stored in {store.path}[/dim]")
        return

    key = Prompt.ask(f"[bold cyan]{PROVIDER.title()} API key[/bold cyan]", password=True).strip()
    if not key:
        console.print("[red]No key entered[/red]")
        sys.exit(1)

    store.set(PROVIDER, key)
    console.print(f"[green]Stored the {PROVIDER} key in {store.path}[/green]")


if __name__ == "__main__":
    main()
