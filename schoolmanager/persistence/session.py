import logging
import threading
from dataclasses import dataclass, field
from typing import List

from schoolmanager.core.engine import EnrollmentEngine
from schoolmanager.core.models import RuleResult
from schoolmanager.persistence.codec import RosterCodec
from schoolmanager.persistence.loaders import load_catalog, load_policy, load_roster, save_roster

logger = logging.getLogger(__name__)


@dataclass
class RosterSession:
    """One run of the school manager: everything loaded from `root` at start."""
    root: str
    codec: RosterCodec
    engine: EnrollmentEngine
    notes: List[str] = field(default_factory=list)
    # endpoints run on a thread pool; every engine call and save holds this
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def catalog(self):
        return self.engine.catalog

    @property
    def registry(self):
        return self.engine.registry

    def save(self) -> RuleResult:
        with self.lock:
            return save_roster(self.root, self.engine.registry, self.codec)


def open_session(root: str) -> RosterSession:
    policy, notes = load_policy(root)
    codec = RosterCodec(policy)
    catalog, catalog_notes = load_catalog(root, codec)
    registry, roster_notes = load_roster(root, catalog, codec)
    notes = notes + catalog_notes + roster_notes
    logger.info(
        "Loaded %d subject(s) and %d student(s) from %s (%d note(s))",
        len(catalog), len(registry), root, len(notes),
    )
    return RosterSession(
        root=root,
        codec=codec,
        engine=EnrollmentEngine(catalog, registry, policy),
        notes=notes,
    )
