# schoolmanager/persistence/loaders.py
import json
import logging
import os
import shutil
import tempfile
from typing import List, Optional, Tuple

from pydantic import ValidationError

from schoolmanager.core.models import RuleResult
from schoolmanager.core.policy import RosterPolicy
from schoolmanager.core.repositories import StudentRegistry, SubjectCatalog
from schoolmanager.persistence.codec import RosterCodec

logger = logging.getLogger(__name__)

CATALOG_FILE = "subjects.txt"
ROSTER_FILE = "students.txt"
POLICY_FILE = "policy.json"


def _read_lines(path: str) -> Tuple[List[str], Optional[str]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().splitlines(), None
    except FileNotFoundError:
        msg = f"{os.path.basename(path)} not found!"
    except (OSError, UnicodeDecodeError) as e:
        msg = f"I/O error reading {os.path.basename(path)}: {e}"
    logger.error(msg)
    return [], msg


def load_policy(root: str) -> Tuple[RosterPolicy, List[str]]:
    path = os.path.join(root, POLICY_FILE)
    if not os.path.exists(path):
        return RosterPolicy(), []
    try:
        with open(path, "r", encoding="utf-8") as f:
            return RosterPolicy(**json.load(f)), []
    except (OSError, ValueError, TypeError, ValidationError) as e:
        msg = f"{POLICY_FILE} ignored, using defaults: {e}"
        logger.error(msg)
        return RosterPolicy(), [msg]


def load_catalog(root: str, codec: RosterCodec) -> Tuple[SubjectCatalog, List[str]]:
    lines, err = _read_lines(os.path.join(root, CATALOG_FILE))
    if err:
        return SubjectCatalog(), [err]
    return codec.parse_catalog_with_notes(lines)


def load_roster(root: str, catalog: SubjectCatalog, codec: RosterCodec) -> Tuple[StudentRegistry, List[str]]:
    lines, err = _read_lines(os.path.join(root, ROSTER_FILE))
    if err:
        return StudentRegistry(), [err]
    return codec.parse_roster_with_notes(lines, catalog)


def save_roster(root: str, registry: StudentRegistry, codec: RosterCodec) -> RuleResult:
    """
    Overwrite the roster file with the whole registry. The text goes to a temporary file
    in the same directory which then replaces the roster, so an interrupted write never
    leaves a truncated roster behind.
    """
    path = os.path.join(root, ROSTER_FILE)
    lines = codec.serialize_roster(registry)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", newline="\n", dir=root,
            prefix=".students-", suffix=".tmp", delete=False,
        ) as f:
            tmp_path = f.name
            for line in lines:
                f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        msg = f"I/O error writing {ROSTER_FILE}: {e}"
        logger.error(msg)
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        return RuleResult(False, msg)

    logger.info("Saved %d student(s) to %s", len(lines), path)
    return RuleResult(True, f"{len(lines)} student(s) saved")
