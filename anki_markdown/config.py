"""
Configuration management.

Handles loading/saving the config.json file, first-time setup for the
deck to study, and the AnkiConnect endpoint.
"""

import json
from pathlib import Path

from .ankiconnect import DEFAULT_URL as DEFAULT_ANKICONNECT_URL
from .scheduler import DEFAULT_SCHEDULER, SCHEDULERS

# Config lives next to the package
CONFIG_FILE = Path(__file__).resolve().parent.parent / "config.json"


def load() -> dict:
    """Load config from config.json. Returns empty dict if not found."""
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return {}


def save(config: dict) -> None:
    """Save config to config.json."""
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def get_deck_name(cli_override: str = None, deck_names: list[str] = None) -> str:
    """
    Get the name of the deck to study.

    Priority:
    1. CLI argument (--deck)
    2. Saved config
    3. Interactive prompt (first-time setup)

    The resolved name is saved to config.json for future runs.
    """
    config = load()

    if cli_override:
        config["deck_name"] = cli_override
        save(config)
        print(f"[config] Deck set via CLI: {cli_override}")
        return cli_override

    if config.get("deck_name"):
        deck = config["deck_name"]
        print(f"[config] Loaded deck: {deck}")
        return deck

    # First-time interactive setup
    print("=" * 60)
    print("First-time setup: deck to study")
    print("=" * 60)
    print()
    if deck_names:
        print("Decks in your collection:")
        for name in deck_names:
            print(f"  - {name}")
        print()
    deck = ""
    while not deck:
        deck = input("Deck name: ").strip().strip('"').strip("'")

    config["deck_name"] = deck
    save(config)
    print(f"[config] Saved to {CONFIG_FILE}")
    return deck


def get_ankiconnect_url(cli_override: str = None) -> str:
    """
    Get the AnkiConnect endpoint URL.

    Priority:
    1. CLI argument (--ankiconnect-url)
    2. Saved config
    3. Default: http://127.0.0.1:8765
    """
    config = load()

    if cli_override:
        config["ankiconnect_url"] = cli_override
        save(config)
        print(f"[config] AnkiConnect URL set via CLI: {cli_override}")
        return cli_override

    if "ankiconnect_url" in config:
        url = config["ankiconnect_url"]
        print(f"[config] Loaded AnkiConnect URL: {url}")
        return url

    print(f"[config] Using default AnkiConnect URL: {DEFAULT_ANKICONNECT_URL}")
    return DEFAULT_ANKICONNECT_URL


def get_scheduler_name(cli_override: str = None) -> str:
    """
    Get the due-card strategy ("due" or "reviewer").

    Priority: CLI argument (--scheduler), saved config, "due".
    Unknown saved values fall back to the default.
    """
    config = load()

    if cli_override:
        config["scheduler"] = cli_override
        save(config)
        return cli_override

    name = config.get("scheduler")
    if name in SCHEDULERS:
        return name
    if name:
        print(f"[config] Unknown scheduler '{name}' in config — using '{DEFAULT_SCHEDULER}'")
    return DEFAULT_SCHEDULER
