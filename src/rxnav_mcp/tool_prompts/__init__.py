"""Centralized prompt and instruction management for the MCP drug tools.

Tool descriptions live in one JSON file per tool (description, usage,
examples) and the server instructions in system_instructions.json, so the
wording can change without touching the server registration code.

Usage:
    from rxnav_mcp.tool_prompts import get_tool_prompt, get_system_instructions
    prompt = get_tool_prompt("search_drug_by_name")
    instructions = get_system_instructions()
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Directory containing prompt files
PROMPTS_DIR = Path(__file__).parent
SYSTEM_INSTRUCTIONS_FILE = "system_instructions.json"


class ToolPrompt:
    """Structured representation of a tool prompt."""

    def __init__(self, name: str, description: str, usage: str, examples: list[str]):
        self.name = name
        self.description = description
        self.usage = usage
        self.examples = examples

    def to_docstring(self) -> str:
        """Convert the prompt to a properly formatted docstring."""
        examples_text = "\n".join(f"- {example}" for example in self.examples)
        return f"""{self.description}

{self.usage}

Examples:
{examples_text}"""

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ToolPrompt":
        """Create a ToolPrompt from dictionary data."""
        return cls(
            name=name,
            description=data["description"],
            usage=data["usage"],
            examples=data["examples"],
        )


# Cache for loaded prompts
_prompts_cache: dict[str, ToolPrompt] = {}
# Cache for system instructions
_system_instructions_cache: dict[str, Any] | None = None


def get_tool_prompt(tool_name: str) -> str | None:
    """Get the formatted prompt/docstring for a tool.

    Args:
        tool_name: Name of the tool (e.g., "get_atc_classification")

    Returns:
        Formatted docstring for the tool, or None if no prompt file exists
    """
    if tool_name in _prompts_cache:
        return _prompts_cache[tool_name].to_docstring()

    prompt_file = PROMPTS_DIR / f"{tool_name}.json"
    if not prompt_file.exists():
        logger.warning(f"Prompt file not found: {prompt_file}")
        return None

    try:
        with open(prompt_file, encoding="utf-8") as f:
            data = json.load(f)
        prompt = ToolPrompt.from_dict(tool_name, data)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Error loading prompt for {tool_name}: {e}")
        return None

    _prompts_cache[tool_name] = prompt
    return prompt.to_docstring()


def reload_prompts() -> None:
    """Reload all prompts from disk. Useful for development."""
    _prompts_cache.clear()
    logger.info("Prompts cache cleared")


def list_available_prompts() -> list[str]:
    """List all tool names that have a prompt file."""
    return sorted(
        f.stem
        for f in PROMPTS_DIR.glob("*.json")
        if f.is_file() and f.name != SYSTEM_INSTRUCTIONS_FILE
    )


def get_system_instructions() -> str | None:
    """Get the server instructions advertised to MCP clients.

    Returns:
        System instructions string, or None if not found
    """
    global _system_instructions_cache

    if _system_instructions_cache is not None:
        return _system_instructions_cache.get("server_instructions")

    instructions_file = PROMPTS_DIR / SYSTEM_INSTRUCTIONS_FILE
    if not instructions_file.exists():
        logger.warning(f"System instructions file not found: {instructions_file}")
        return None

    try:
        with open(instructions_file, encoding="utf-8") as f:
            _system_instructions_cache = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading system instructions: {e}")
        return None

    return _system_instructions_cache.get("server_instructions")


def reload_system_instructions() -> None:
    """Reload system instructions from disk. Useful for development."""
    global _system_instructions_cache
    _system_instructions_cache = None
    logger.info("System instructions cache cleared")
