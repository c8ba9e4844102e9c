"""Interactive CLI passcode simulator — exercise the API without a browser."""

import asyncio

from multiauth.config import settings
from multiauth.registry.store import ActivePasscode
from multiauth.services import presenter
from multiauth.services.client_api import PasscodeClient

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def show_list(client: PasscodeClient) -> None:
    rows = await client.list_active()
    entries = [ActivePasscode(identifier=r.code, remaining_ms=r.remaining_ms) for r in rows]
    for line in presenter.render_lines(entries):
        print(f"  {DIM}{line}{RESET}")
    print()


async def watch(client: PasscodeClient, seconds: int) -> None:
    """Re-render the list every refresh interval, like the browser page did."""
    ticks = max(1, int(seconds / settings.refresh_interval_seconds))
    for _ in range(ticks):
        await show_list(client)
        await asyncio.sleep(settings.refresh_interval_seconds)


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🔑  {settings.app_name} — Passcode Simulator")
    print(f"{'=' * 52}{RESET}\n")

    print(f"{DIM}Commands: generate <code>, check <code>, list, watch [seconds], quit{RESET}")
    print(f"{DIM}Passcodes last {settings.default_duration_ms // 1000}s by default{RESET}\n")

    # ── Start the API in the background ──────────────────
    import uvicorn
    from multiauth.main import app

    config = uvicorn.Config(app, host="127.0.0.1", port=8000, log_level="warning")
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve())

    # Give the server a moment to start
    await asyncio.sleep(0.5)

    client = PasscodeClient()

    while True:
        try:
            user_input = input(f"{BLUE}{BOLD}>{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if not user_input:
            continue

        command, _, argument = user_input.partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        if command == "list":
            await show_list(client)
            continue

        if command == "watch":
            await watch(client, int(argument) if argument.isdigit() else 5)
            continue

        if command in ("generate", "check"):
            if command == "generate":
                result = await client.create_or_renew(argument)
            else:
                result = await client.is_valid(argument)
            if result is None:
                print(f"{RED}Request failed — see logs{RESET}\n")
                continue
            print(f"{GREEN}{result.message}{RESET}")
            await show_list(client)
            continue

        print(f"{YELLOW}Unknown command: {command}{RESET}\n")

    # Shut down the background server
    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
