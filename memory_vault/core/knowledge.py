"""
Knowledge base loading. The entries are read once per process and never mutated.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .config import KNOWLEDGE_PATH
from .schema import KnowledgeEntry
from ..util.logging import logger


def get_default_knowledge_base() -> Dict[str, Any]:
    return {
        "version": "1.0.0",
        "updatedAt": date.today().isoformat(),
        "entries": []
    }


def load_knowledge_base(path: Optional[str] = None) -> Tuple[KnowledgeEntry, ...]:
    """
    Load knowledge entries from a JSON file of the form {version, updatedAt, entries: [...]}.

    A missing file is created with an empty default knowledge base. A malformed file,
    or one whose 'entries' is not a list, yields an empty knowledge base.
    """
    knowledge_file = Path(path or KNOWLEDGE_PATH)

    if not knowledge_file.exists():
        logger.warning(f"Knowledge file {knowledge_file} not found; writing empty default")
        try:
            knowledge_file.parent.mkdir(parents=True, exist_ok=True)
            knowledge_file.write_text(json.dumps(get_default_knowledge_base(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not write default knowledge file {knowledge_file}: {e}")
        return ()

    try:
        parsed = json.loads(knowledge_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read knowledge file {knowledge_file}: {e}")
        return ()

    entries = parsed.get("entries") if isinstance(parsed, dict) else None
    if not isinstance(entries, list):
        logger.warning(f"Knowledge file {knowledge_file} has no entries list; using empty knowledge base")
        return ()

    knowledge = tuple(KnowledgeEntry.from_dict(entry) for entry in entries if isinstance(entry, dict))
    logger.log_operation("knowledge.load", "success", {
        "path": str(knowledge_file),
        "version": parsed.get("version", "unknown"),
        "entries": len(knowledge)
    })
    return knowledge
