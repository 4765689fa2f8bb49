import asyncio
import logging

from webxr_directory.client.api_client import ApiRequestFailed, ToolsApiClient
from webxr_directory.client.browser import ToolBrowser, thumbnail_for
from webxr_directory.client.filter_state import CHECKBOX_CATEGORIES, SORT_OPTIONS
from webxr_directory.core.config import settings

HELP_TEXT = (
    "Commands: 'search <text>', 'toggle <category>', 'sort <option>', "
    "'show <id>', 'list', 'quit'.\n"
    f"Categories: {', '.join(CHECKBOX_CATEGORIES)}\n"
    f"Sort options: {', '.join(SORT_OPTIONS)}"
)


def print_tools(browser: ToolBrowser) -> None:
    if browser.error:
        print(f"Error: {browser.error}")
        return
    if not browser.tools:
        print("No tools found. Try adjusting filters or search.")
        return
    for tool in browser.tools:
        rating = f" ({tool.rating})" if tool.rating is not None else ""
        print(f"- [{tool.id}] {tool.name}{rating}: {tool.category or 'Uncategorised'}")


async def main():
    logging.basicConfig(level=settings.log_level.upper())
    print("🥽 WebXR Directory (type 'help' for guidance, 'quit' to exit)")
    print("-------------------------------------------------------------")

    api = ToolsApiClient(base_url=settings.api_base_url)
    browser = ToolBrowser(api, debounce_ms=settings.search_debounce_ms)
    browser.start()
    await browser.wait_idle()
    print_tools(browser)

    try:
        while True:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()
            command, _, argument = user_input.partition(" ")
            command = command.lower()
            argument = argument.strip()

            if command in ["quit", "exit"]:
                break
            if command == "help":
                print(HELP_TEXT)
                continue

            if command == "search":
                browser.filters.set_input_text(argument)
            elif command == "toggle":
                selected = browser.filters.selected_categories.get(argument, False)
                browser.filters.toggle_category(argument, not selected)
            elif command == "sort":
                if argument not in SORT_OPTIONS:
                    print(f"Unknown sort option '{argument}'.")
                    continue
                browser.filters.set_sort(argument)
            elif command == "show":
                try:
                    tool = await browser.load_tool(argument)
                except (ApiRequestFailed, ValueError) as exc:
                    print(f"Error: {exc}")
                    continue
                print(f"{tool.name}\n  {tool.url or 'No link'}\n  {tool.description}")
                print(f"  Image: {thumbnail_for(tool)}")
                continue
            elif command != "list":
                print("Unknown command. Type 'help' for guidance.")
                continue

            await browser.wait_idle()
            print_tools(browser)
    finally:
        browser.close()
        await api.close()


if __name__ == "__main__":
    asyncio.run(main())
