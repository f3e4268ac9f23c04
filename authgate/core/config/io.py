from __future__ import annotations

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    # missing | not_object | corrupt_json:<msg> | unreadable:<msg>
    error: Optional[str] = None

    @property
    def corrupt(self) -> bool:
        return bool(self.error) and self.error.startswith("corrupt_json")


def _stamp() -> str:
    t = time.time()
    return time.strftime("%Y%m%d_%H%M%S", time.gmtime(t)) + f"_{int(t * 1000) % 1000:03d}"


def read_json_file(path: str) -> ReadResult:
    """Read a JSON object file. Never raises; the outcome is in the result."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except FileNotFoundError:
        return ReadResult(ok=False, data={}, error="missing")
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except (OSError, UnicodeDecodeError) as e:
        return ReadResult(ok=False, data={}, error=f"unreadable:{e}")
    if not isinstance(obj, dict):
        return ReadResult(ok=False, data={}, error="not_object")
    return ReadResult(ok=True, data=obj)


def prune_backups(backups_dir: str, base: str, *, keep: int) -> List[str]:
    """Delete all but the newest `keep` backups of `base`. Returns what was removed."""
    prefix = f"{base}."
    try:
        names = [n for n in os.listdir(backups_dir) if n.startswith(prefix)]
    except FileNotFoundError:
        return []
    paths = sorted((os.path.join(backups_dir, n) for n in names), key=os.path.getmtime, reverse=True)
    removed: List[str] = []
    for p in paths[max(0, int(keep)):]:
        try:
            os.remove(p)
            removed.append(p)
        except OSError:
            continue
    return removed


def backup_file(path: str, backups_dir: str, *, tag: str, keep: int = 10) -> Optional[str]:
    """Copy `path` to <backups_dir>/<name>.<stamp>.<tag>.json; None when there is nothing to copy."""
    if not os.path.isfile(path):
        return None
    os.makedirs(backups_dir, exist_ok=True)
    base = os.path.basename(path)
    stem = os.path.join(backups_dir, f"{base}.{_stamp()}")
    out = f"{stem}.{tag}.json"
    n = 1
    while os.path.exists(out):
        n += 1
        out = f"{stem}.{n}.{tag}.json"
    shutil.copy2(path, out)
    prune_backups(backups_dir, base, keep=keep)
    return out


def atomic_write_json(path: str, data: Dict[str, Any], backups_dir: str, *, keep: int = 10) -> None:
    """Back up the current file, then write the new one via temp file + rename."""
    folder = os.path.dirname(path) or "."
    os.makedirs(folder, exist_ok=True)
    backup_file(path, backups_dir, tag="prewrite", keep=keep)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def quarantine(path: str, backups_dir: str) -> Optional[str]:
    """Move a corrupt file out of the way so it is neither read again nor lost."""
    if not os.path.exists(path):
        return None
    os.makedirs(backups_dir, exist_ok=True)
    dest = os.path.join(backups_dir, f"{os.path.basename(path)}.{_stamp()}.corrupt.json")
    shutil.move(path, dest)
    return dest


def restore_last_known_good(path: str, last_known_good_dir: str, backups_dir: str, *, keep: int = 10) -> Optional[Dict[str, Any]]:
    rr = read_json_file(os.path.join(last_known_good_dir, os.path.basename(path)))
    if not rr.ok:
        return None
    atomic_write_json(path, rr.data, backups_dir, keep=keep)
    return rr.data


def snapshot_last_known_good(config_dir: str, last_known_good_dir: str, names: Iterable[str]) -> None:
    os.makedirs(last_known_good_dir, exist_ok=True)
    for name in names:
        src = os.path.join(config_dir, name)
        if os.path.isfile(src):
            shutil.copy2(src, os.path.join(last_known_good_dir, name))
