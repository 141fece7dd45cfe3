"""FastMCP server exposing read-only provisioning lookups as MCP tools.

Tools:
  - next_trivia_id(category)   — id the next trivia set in a category would get
  - date_key_exists(date)      — whether a daily mission is already provisioned
  - get_level(level)           — stored catalog entry for one level
  - list_trivia_sets(category) — existing trivia set ids, optionally per category

build_server() binds the tools to an explicit store; tests pass a store
rooted in a temp dir. Running as __main__ uses DATA_DIR (default ./data).

Usage:
    uv run python -m backend.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from emojivia.catalog import LEVELS_COLLECTION
from emojivia.identifiers import (
    TRIVIA_COLLECTION,
    IdentifierAllocator,
    format_date_key,
    trivia_prefix,
)
from emojivia.store import ContentStore


def build_server(store: ContentStore) -> FastMCP:
    mcp = FastMCP("emojivia-store")
    allocator = IdentifierAllocator(store)

    @mcp.tool()
    def next_trivia_id(category: str) -> str:
        """Return the next unused "<category>_trivia_<n>" id."""
        return allocator.next_sequential_id(category)

    @mcp.tool()
    def date_key_exists(date: str) -> dict:
        """Check whether a DD-MM-YYYY daily mission has been provisioned."""
        key = format_date_key(date)
        return {"date": key, "exists": allocator.date_key_exists(key)}

    @mcp.tool()
    def get_level(level: int) -> dict:
        """Return the stored catalog entry for a level."""
        doc = store.get(f"{LEVELS_COLLECTION}/{level}")
        if doc is None:
            raise ValueError(f"Level {level} is not seeded")
        return doc

    @mcp.tool()
    def list_trivia_sets(category: str = "") -> dict:
        """List trivia set ids, restricted to one category when given."""
        ids = [d.id for d in store.list_documents(TRIVIA_COLLECTION)]
        if category:
            prefix = trivia_prefix(category)
            ids = [i for i in ids if i.startswith(prefix)]
        return {"sets": ids}

    return mcp


if __name__ == "__main__":
    import os
    from pathlib import Path

    from emojivia.store import JsonFileStore

    data_dir = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))
    build_server(JsonFileStore(data_dir)).run()
