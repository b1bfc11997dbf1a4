"""
A terminal client for the Ideate agent service.
"""
import json
import uuid
from typing import Optional

import requests
import typer
from prompt_toolkit import prompt as ptk_prompt
from prompt_toolkit.formatted_text import FormattedText
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

# --- Configuration ---
API_BASE_URL = "http://127.0.0.1:8080/api/v1"


# --- Rich Console Initialization ---
console = Console()
app = typer.Typer(
    name="ideate-cli",
    help="A terminal client for the Ideate agent service.",
    add_completion=False,
)


# --- API Interaction Functions ---

def get_conversations(base_url: str) -> list:
    """Fetches conversation ids, most recent first."""
    try:
        response = requests.get(f"{base_url}/conversations")
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        console.print(f"[bold red]Error:[/bold red] Could not connect to the service at {base_url}.")
        console.print("Please ensure the service is running: [bold]python -m ideate_agent.app[/bold]")
        console.print(f"Details: {e}")
        raise typer.Exit(1)


def get_turns(base_url: str, conversation_id: str) -> list:
    """Fetches the stored turns for a conversation; empty when it does not exist."""
    try:
        response = requests.get(f"{base_url}/conversations/{conversation_id}/turns")
        if response.status_code == 404:
            return []
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        console.print(f"[bold red]Error fetching history for {conversation_id}:[/bold red] {e}")
        return []


def display_history(turns: list):
    """Renders stored turns as panels."""
    if not turns:
        console.print("[dim]No turns yet.[/dim]")
        return

    for turn in turns:
        role = turn.get("role", "unknown")
        content = turn.get("content", "")
        if role == "user":
            console.print(Panel(Text(content, style="cyan"), title="You", title_align="left", border_style="cyan"))
            continue
        for call in turn.get("toolCalls", []):
            console.print(Panel(
                Text(f"Tool: {call.get('name')}\nInput: {json.dumps(call.get('input', {}))}", style="yellow"),
                title="Tool Call",
                title_align="left",
                border_style="yellow",
            ))
        console.print(Panel(Text(content, style="green"), title="Assistant", title_align="left", border_style="green"))
    console.print()


def render_blocks(tag: str, records: list):
    """Show open questions and suggested responses the way a UI would offer them."""
    if tag == "open_questions":
        for q in records:
            table = Table(title=q.get("question", ""), show_header=False, border_style="magenta")
            table.add_column("Option", style="bold magenta")
            table.add_column("Label")
            for opt in q.get("options", []):
                table.add_row(opt.get("id", ""), opt.get("label", ""))
            if q.get("allowCustom", True):
                table.add_row("*", "[dim]or answer in your own words[/dim]")
            console.print(table)
    elif tag == "suggested_responses":
        labels = [f"[bold cyan]{r.get('label')}[/bold cyan]" for r in records]
        console.print("Suggestions: " + "  |  ".join(labels))
    elif tag == "document_edits":
        console.print(Panel(
            "\n".join(f"{e.get('action')}: {e.get('text', '')[:80]}" for e in records),
            title="Proposed document edits",
            border_style="blue",
        ))
    elif tag == "idea_update":
        for idea in records:
            tags = ", ".join(idea.get("tags", [])) or "none"
            console.print(Panel(
                f"[bold]{idea.get('title', 'Untitled Idea')}[/bold]\n{idea.get('summary', '')}\nTags: {tags}",
                title="Idea draft",
                border_style="magenta",
            ))
    else:
        console.print(f"[dim]<{tag}> {records}[/dim]")


def stream_message(base_url: str, conversation_id: str, prompt: str, acting_identity: Optional[str], debug: bool):
    """Posts one message and renders the NDJSON event stream."""
    body = {"conversation_id": conversation_id, "prompt": prompt}
    if acting_identity:
        body["acting_identity"] = acting_identity

    with requests.post(f"{base_url}/chat/stream", json=body, stream=True) as response:
        response.raise_for_status()

        text_started = False
        spinner_active = True

        # Start spinner while waiting for first response
        with Live(Spinner("dots", text="[dim]Waiting for response...[/dim]"), console=console, refresh_per_second=10) as live:
            for line in response.iter_lines():
                # Stop spinner on first event
                if spinner_active:
                    live.stop()
                    spinner_active = False

                if not line:
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    if debug:
                        console.print(f"[red]Error parsing JSON: {line.decode('utf-8', errors='replace')}[/red]")
                    continue

                evt_type = event.get("type")
                evt_data = event.get("data", {})

                if debug:
                    console.print(f"[dim]Received event: {event}[/dim]")

                if evt_type == "text":
                    if not text_started:
                        console.print("\n[bold green]Assistant:[/bold green]")
                        text_started = True
                    console.print(evt_data.get("delta", ""), end="", style="green")

                elif evt_type == "tool_use":
                    if text_started:
                        console.print()
                    console.print(Panel(
                        f"Calling tool: [bold yellow]{evt_data.get('name')}[/bold yellow] {json.dumps(evt_data.get('input', {}))}",
                        expand=False,
                        border_style="yellow",
                    ))

                elif evt_type == "tool_result":
                    output_str = str(evt_data.get("output", ""))
                    console.print(Panel(
                        f"Tool [bold yellow]{evt_data.get('name')}[/bold yellow] output: {output_str[:150]}",
                        title="Tool Output",
                        expand=False,
                        border_style="dim yellow",
                    ))

                elif evt_type == "blocks":
                    if text_started:
                        console.print()
                    render_blocks(evt_data.get("tag", ""), evt_data.get("records", []))

                elif evt_type == "error":
                    if text_started:
                        console.print()
                    console.print(Panel(f"Error: {evt_data.get('message')}", title="Error", border_style="bold red"))

                elif evt_type == "done":
                    if text_started:
                        console.print()
                    if debug:
                        console.print("[dim][Response complete][/dim]")


@app.command()
def chat(
    conversation_id: Optional[str] = typer.Option(
        None, "--conversation", "-c", help="Resume this conversation instead of starting a new one."
    ),
    acting_identity: Optional[str] = typer.Option(
        None, "--as", help="Identity the service runs tools for (defaults to the server's setting)."
    ),
    base_url: str = typer.Option(API_BASE_URL, "--url", help="Base URL of the service API."),
    debug: bool = typer.Option(False, "--debug", help="Show raw events."),
):
    """
    Chat interactively with the agent.
    """
    if conversation_id:
        console.print(f"✅ Resuming conversation: [yellow]{conversation_id}[/yellow]")
        display_history(get_turns(base_url, conversation_id))
    else:
        conversation_id = f"conv-{uuid.uuid4().hex[:8]}"
        console.print(f"✅ New conversation: [yellow]{conversation_id}[/yellow]")

    console.print(Panel(
        "Type [bold cyan]\\history[/bold cyan] to show this conversation, "
        "[bold cyan]\\exit[/bold cyan] or [bold cyan]\\quit[/bold cyan] to end",
        title="Chat Info",
        border_style="dim",
    ))

    # --- Main chat loop ---
    while True:
        try:
            prompt_message = [
                ("bold cyan", "You "),
                ("", "(Alt+Enter for newline)\n"),
            ]
            user_prompt = ptk_prompt(FormattedText(prompt_message), multiline=True)

            stripped_prompt = user_prompt.strip().lower()
            if not stripped_prompt:
                continue
            if stripped_prompt in ["\\exit", "\\quit"]:
                console.print("👋 Goodbye!")
                break
            if stripped_prompt == "\\history":
                display_history(get_turns(base_url, conversation_id))
                continue

            stream_message(base_url, conversation_id, user_prompt, acting_identity, debug)

        except (KeyboardInterrupt, EOFError):
            console.print("\n👋 Goodbye!")
            break
        except requests.RequestException as e:
            console.print(f"\n[bold red]Error:[/bold red] Could not get response from server. {e}")
            continue
        finally:
            console.rule()


@app.command()
def history(
    conversation_id: Optional[str] = typer.Argument(None, help="Conversation to show; lists conversations if omitted."),
    base_url: str = typer.Option(API_BASE_URL, "--url", help="Base URL of the service API."),
):
    """
    Show the stored turns of a conversation.
    """
    if conversation_id is None:
        conversations = get_conversations(base_url)
        if not conversations:
            console.print("[dim]No conversations yet.[/dim]")
            return
        table = Table(title="Conversations", border_style="blue")
        table.add_column("#", style="bold cyan")
        table.add_column("Conversation ID", style="yellow")
        for i, cid in enumerate(conversations):
            table.add_row(str(i + 1), cid)
        console.print(table)
        return
    display_history(get_turns(base_url, conversation_id))


@app.command()
def clear(
    conversation_id: str = typer.Argument(..., help="Conversation to delete."),
    base_url: str = typer.Option(API_BASE_URL, "--url", help="Base URL of the service API."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    """
    Delete every turn of a conversation.
    """
    if not yes and not typer.confirm(f"Delete conversation {conversation_id}?"):
        raise typer.Exit()
    try:
        response = requests.delete(f"{base_url}/conversations/{conversation_id}")
        if response.status_code == 404:
            console.print(f"[yellow]Conversation {conversation_id} not found.[/yellow]")
            raise typer.Exit(1)
        response.raise_for_status()
        console.print(f"✅ Deleted {response.json().get('deleted_count', 0)} turn(s).")
    except requests.RequestException as e:
        console.print(f"[bold red]Error deleting conversation {conversation_id}:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
