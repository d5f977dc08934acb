"""
Configuration importer.

Replaces title, category, counters and split names wholesale from an import
document and, when the document carries a personal best, inserts it as a
synthesized completed run flagged as the new PB. Everything happens in one
transaction; parsing finishes before the transaction begins.
"""

import json
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..errors import MalformedInputError
from ..logging.config import get_logger
from ..persistence.run_store import RunStore
from ..utils.time import ns_to_datetime
from .models import ImportDocument
from .parsers import parse_import_document

logger = get_logger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def load_import_file(path: Union[str, Path]) -> ImportDocument:
    """
    Read and validate an import document from a JSON or YAML file.

    Raises:
        MalformedInputError: If the file cannot be read, decoded or validated
    """
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MalformedInputError(
            f"Failed to read import file {path}: {e}",
            raw_data=str(path)
        ) from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedInputError(
            f"Failed to parse import file {path}: {e}",
            raw_data=text[:200],
            expected_format="JSON or YAML object"
        ) from e

    return parse_import_document(payload)


class ConfigurationImporter:
    """Applies validated import documents to a RunStore."""

    def __init__(self, store: RunStore, synthetic_start_offset_hours: int = 24):
        self.store = store
        self.synthetic_start_offset = timedelta(hours=synthetic_start_offset_hours)
        self.logger = logger

    def prepare(self, document: Union[ImportDocument, dict[str, Any]]) -> ImportDocument:
        """Validate raw payloads; validated documents pass through."""
        if isinstance(document, ImportDocument):
            return document
        return parse_import_document(document)

    def apply(self, document: ImportDocument, now_ns: int) -> Optional[int]:
        """
        Replace the stored configuration with the document's contents.

        Args:
            document: Validated import document
            now_ns: Clock reading used to place the synthetic PB start time

        Returns:
            Id of the inserted personal best run, or None if the document had none

        Raises:
            PersistenceFailureError: If any statement fails; nothing is kept
        """
        pb_run_id = None

        with self.store.transaction("import_config") as conn:
            self.store.write_config(
                conn,
                document.title,
                document.category,
                document.attempts,
                document.completed
            )
            self.store.replace_split_names(conn, document.split_names)
            self.store.clear_personal_best(conn)

            pb = document.personal_best
            if pb is not None:
                start_time = ns_to_datetime(now_ns) - self.synthetic_start_offset
                end_time = start_time + timedelta(microseconds=pb.total_ns // 1000)

                pb_run_id = self.store.insert_run(
                    conn,
                    title=document.title,
                    category=document.category,
                    start_time=start_time,
                    end_time=end_time,
                    completed=True,
                    attempt_num=pb.attempt_num,
                    is_pb=True
                )
                self.store.insert_splits(conn, pb_run_id, document.split_names, pb.durations_ns)

        self.logger.info(
            "Configuration imported",
            title=document.title,
            category=document.category,
            split_count=len(document.split_names),
            personal_best_run_id=pb_run_id
        )
        return pb_run_id
