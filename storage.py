# storage.py
"""
JSON store for snapshots. Called only from explicit user commands
(Save / Load, download / upload); the engine never imports this module.
"""

from typing import Optional
import json
import logging

logger = logging.getLogger(__name__)


def snapshot_to_json(snapshot: dict) -> str:
    return json.dumps(snapshot, indent=4, ensure_ascii=False)


def snapshot_from_json(text) -> Optional[dict]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning("Could not parse graph JSON: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("Could not parse graph JSON: top level is not an object")
        return None
    return data


def save_snapshot(filepath, snapshot: dict) -> bool:
    try:
        text = snapshot_to_json(snapshot)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info("Graph saved to %s", filepath)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Error saving graph to %s: %s", filepath, e)
        return False


def load_snapshot(filepath) -> Optional[dict]:
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Error loading graph from %s: %s", filepath, e)
        return None
    return snapshot_from_json(text)
