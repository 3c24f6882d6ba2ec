import os
import json
import re


def save_text(text: str, path: str):
    """Save text (HTML snapshots, markdown reports) to the given path, creating directories if needed."""
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)


def save_json(data, path: str):
    """Save JSON-serializable data to the given path, creating directories if needed."""
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def slugify(name: str) -> str:
    return re.sub(r'\s+', '_', name.strip()).lower()
